"""Custom log formatters for Providerloop Chains.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts patient identifiers from log messages.

    Redacts SSNs, Source IDs (which embed name and date of birth), dates in
    MM/DD/YYYY or YYYY-MM-DD form, and "Patient: First Last" style names.

    Example:
        >>> formatter = PIIRedactingFormatter(redact_pii=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        # Order matters: Source IDs contain dates, so they are redacted first
        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            (re.compile(r"\b\d{3}-\d{2}-\d{4}\b"), "[SSN-REDACTED]"),
            (
                re.compile(r"\b[\w'\-]+(?:_[\w'\-]+)*__\d{2}_\d{2}_\d{4}\b"),
                "[SOURCE-ID-REDACTED]",
            ),
            (re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"), "[DATE-REDACTED]"),
            (re.compile(r"\b\d{4}-\d{2}-\d{2}\b"), "[DATE-REDACTED]"),
            (
                re.compile(r"(Patient|Name|Subscriber):\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+"),
                r"\1: [NAME-REDACTED]",
            ),
        ]

    def redact(self, message: str) -> str:
        """Apply every redaction pattern to a message."""
        for pattern, replacement in self.patterns:
            message = pattern.sub(replacement, message)
        return message

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction.

        Only the message is redacted; the timestamp and logger name are left
        untouched.
        """
        if not self.redact_pii:
            return super().format(record)

        redacted = logging.makeLogRecord(record.__dict__)
        redacted.msg = self.redact(record.getMessage())
        redacted.args = None
        return super().format(redacted)
