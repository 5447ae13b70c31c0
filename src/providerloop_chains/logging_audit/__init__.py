"""Logging Audit module.

This module provides logging configuration and audit trail functionality.
"""

from .audit import format_audit_message, log_audit_event, log_transaction
from .formatters import PIIRedactingFormatter
from .logger import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "format_audit_message",
    "get_logger",
    "log_audit_event",
    "log_transaction",
    "PIIRedactingFormatter",
]
