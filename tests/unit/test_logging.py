"""Unit tests for logging configuration, PII redaction and audit events."""

import logging
import re

import pytest

from providerloop_chains.logging_audit import (
    PIIRedactingFormatter,
    configure_logging,
    log_audit_event,
    log_transaction,
)


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)


def _record(message, *args):
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, args, None)


class TestPIIRedactingFormatter:
    """Tests for PIIRedactingFormatter."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Triggered for Smith_John__01_15_1980", "Triggered for [SOURCE-ID-REDACTED]"),
            ("Source Van_Der_Berg_Mary__01_02_1990 ok", "Source [SOURCE-ID-REDACTED] ok"),
            ("DOB 01/15/1980 found", "DOB [DATE-REDACTED] found"),
            ("DOB 1980-01-15 found", "DOB [DATE-REDACTED] found"),
            ("SSN 123-45-6789", "SSN [SSN-REDACTED]"),
            ("Patient: John Smith arrived", "Patient: [NAME-REDACTED] arrived"),
        ],
    )
    def test_redaction(self, message, expected):
        formatter = PIIRedactingFormatter(fmt="%(message)s")

        assert formatter.format(_record(message)) == expected

    def test_arguments_are_redacted(self):
        formatter = PIIRedactingFormatter(fmt="%(message)s")

        assert formatter.format(_record("id=%s", "Smith_John__01_15_1980")) == "id=[SOURCE-ID-REDACTED]"

    def test_timestamp_not_redacted(self):
        # Arrange - the date format matches the ISO date pattern
        formatter = PIIRedactingFormatter(fmt="%(asctime)s %(message)s", datefmt="%Y-%m-%d")

        # Act
        output = formatter.format(_record("born 01/15/1980"))

        # Assert
        assert re.match(r"^\d{4}-\d{2}-\d{2} born \[DATE-REDACTED\]$", output)

    def test_redaction_disabled(self):
        formatter = PIIRedactingFormatter(fmt="%(message)s", redact_pii=False)

        assert formatter.format(_record("Smith_John__01_15_1980")) == "Smith_John__01_15_1980"

    def test_original_record_unchanged(self):
        formatter = PIIRedactingFormatter(fmt="%(message)s")
        record = _record("DOB 01/15/1980")

        formatter.format(record)

        assert record.getMessage() == "DOB 01/15/1980"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_creates_log_file(self, tmp_path, restore_root_logger):
        # Arrange
        log_file = tmp_path / "logs" / "nested" / "app.log"

        # Act
        configure_logging(level="DEBUG", log_file=log_file)
        logging.getLogger("providerloop_chains.test").info("hello")

        # Assert
        assert log_file.exists()
        assert "hello" in log_file.read_text()

    def test_reconfigure_replaces_only_own_handlers(self, tmp_path, restore_root_logger):
        # Arrange
        root = logging.getLogger()
        foreign = logging.NullHandler()
        root.addHandler(foreign)
        configure_logging(log_file=tmp_path / "a.log")
        count = len(root.handlers)

        # Act
        configure_logging(log_file=tmp_path / "b.log")

        # Assert
        assert len(root.handlers) == count
        assert foreign in root.handlers
        root.removeHandler(foreign)

    def test_third_party_loggers_quieted(self, tmp_path, restore_root_logger):
        configure_logging(level="INFO", log_file=tmp_path / "app.log")
        assert logging.getLogger("urllib3").level == logging.WARNING

        configure_logging(level="DEBUG", log_file=tmp_path / "app.log")
        assert logging.getLogger("urllib3").level == logging.DEBUG

    def test_invalid_level(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="LOUD", log_file=tmp_path / "app.log")


class TestAuditEvents:
    """Tests for log_audit_event and log_transaction."""

    def test_success_event_fields_in_order(self, caplog):
        caplog.set_level(logging.INFO)

        log_audit_event(
            "DISPATCH_SUCCEEDED",
            {"duration": 1.234, "chain": "LABS", "status": "success", "extra": "x"},
        )

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        message = record.getMessage()
        assert message.startswith("AUDIT [DISPATCH_SUCCEEDED] | status=success | chain=LABS")
        assert "duration=1.23s" in message
        assert "correlation_id=" in message
        assert message.endswith("extra=x")

    def test_failure_event_logged_as_error(self, caplog):
        caplog.set_level(logging.INFO)

        log_audit_event("DISPATCH_FAILED", {"status": "failure", "error_message": "boom"})

        assert caplog.records[-1].levelno == logging.ERROR

    def test_transaction_bodies_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG)

        log_transaction("CHAIN_TRIGGER", '{"a": 1}', '{"ChainRun_ID": "run-1"}')

        levels = [(r.levelno, r.getMessage().split("\n")[0]) for r in caplog.records]
        assert levels[0][0] == logging.INFO
        assert "request_size=8 bytes" in levels[0][1]
        assert [level for level, _ in levels[1:]] == [logging.DEBUG, logging.DEBUG]
        assert '{"ChainRun_ID": "run-1"}' in caplog.records[-1].getMessage()
