"""Audit trail for extractions, chain dispatches and agent callbacks.

Audit lines are pipe-separated ``key=value`` pairs so they can be grepped
out of the rotating log file:

    AUDIT [DISPATCH_SUCCEEDED] | status=success | chain=ATTACHMENT PROCESSING (LABS) | ...
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)

# Emitted first, in this order; remaining keys follow in insertion order
FIELD_ORDER = (
    "status",
    "document_type",
    "chain",
    "chain_run_id",
    "idempotency_key",
    "duration",
    "error_message",
    "correlation_id",
)


def _pair(key: str, value: Any) -> str:
    if key == "duration" and isinstance(value, (int, float)):
        return f"duration={value:.2f}s"
    return f"{key}={value}"


def format_audit_message(event_type: str, details: Dict[str, Any]) -> str:
    """Render an audit line; the timestamp is kept off the line."""
    ordered = [key for key in FIELD_ORDER if key in details]
    ordered += [key for key in details if key not in FIELD_ORDER and key != "timestamp"]
    return " | ".join([f"AUDIT [{event_type}]"] + [_pair(key, details[key]) for key in ordered])


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit event.

    Logged at ERROR when details["status"] is "failure", INFO otherwise. A
    timestamp and correlation_id are added when missing.

    Args:
        event_type: EXTRACTION_COMPLETED, DISPATCH_SUCCEEDED, DISPATCH_FAILED,
                    AGENT_RESPONSE_RECEIVED, ...
        details: Event fields such as status, chain, chain_run_id, duration
                 (seconds) and error_message

    Example:
        >>> log_audit_event("DISPATCH_SUCCEEDED", {
        ...     "status": "success",
        ...     "chain": "ATTACHMENT PROCESSING (LABS)",
        ...     "chain_run_id": "run-123",
        ... })
    """
    details = {"timestamp": time.time(), "correlation_id": str(uuid.uuid4()), **details}
    level = "error" if details.get("status") == "failure" else "info"
    getattr(logger, level)(format_audit_message(event_type, details))


def log_transaction(
    transaction_type: str,
    request: str,
    response: str,
    status: str = "success",
) -> None:
    """Log one request/response exchange with a remote service.

    A summary line with body sizes goes to INFO; the bodies themselves go to
    DEBUG so they only reach the log file.
    """
    correlation_id = str(uuid.uuid4())
    logger.info(
        f"TRANSACTION [{transaction_type}] | status={status} | correlation_id={correlation_id} | "
        f"request_size={len(request)} bytes | response_size={len(response)} bytes"
    )
    for label, body in (("REQUEST", request), ("RESPONSE", response)):
        logger.debug(f"TRANSACTION {label} [{transaction_type}] | correlation_id={correlation_id}\n{body}")
