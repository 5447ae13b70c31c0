"""Logging setup for Providerloop Chains.

Console output goes to stderr at the requested level; a rotating log file
always receives DEBUG. Both share one PII-redacting formatter.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import PIIRedactingFormatter

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "providerloop-chains.log"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

# Chatty client libraries stay at WARNING unless DEBUG is requested
THIRD_PARTY_LOGGERS = ("urllib3", "openai", "httpx", "httpcore", "werkzeug")

# Marks handlers installed by configure_logging so a second call replaces them
_HANDLER_MARKER = "_providerloop_handler"


def _owned_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if getattr(h, _HANDLER_MARKER, False)]


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = True,
) -> None:
    """Configure root logging.

    Safe to call more than once: handlers from an earlier call are closed
    and replaced, handlers installed by anything else are left alone.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log file path; falls back to PROVIDERLOOP_LOG_FILE, then
                  DEFAULT_LOG_FILE
        redact_pii: Redact patient names, dates of birth and Source IDs

    Raises:
        ValueError: If level is not a logging level name
        RuntimeError: If the log directory cannot be created
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )

    if log_file is None:
        log_file = Path(os.environ.get("PROVIDERLOOP_LOG_FILE") or DEFAULT_LOG_FILE)

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"Failed to create log directory {log_file.parent}: {e}") from e

    root = logging.getLogger()
    for handler in _owned_handlers(root):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.DEBUG)

    formatter = PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)

    console = _mark(logging.StreamHandler())
    console.setLevel(numeric_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        file_handler = _mark(
            RotatingFileHandler(
                log_file, maxBytes=MAX_LOG_FILE_SIZE, backupCount=BACKUP_COUNT, encoding="utf-8"
            )
        )
    except OSError as e:
        root.warning(f"Cannot write log file {log_file} ({e}); logging to console only")
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    third_party_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(module_name: str) -> logging.Logger:
    """Return the logger for a module (pass __name__)."""
    return logging.getLogger(module_name)
