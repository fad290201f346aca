"""Tests for config and logging."""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from emi_engine.config import (
    EngineConfig,
    NotificationConfig,
    OutputConfig,
    PaymentConfig,
    ScenarioConfig,
)
from emi_engine.exceptions import ConfigurationError
from emi_engine.logging import (
    ContextFormatter,
    JsonFormatter,
    get_logger,
    log_context,
    setup_logging,
)


class TestNotificationConfig:
    """Tests for NotificationConfig."""

    def test_default_values(self) -> None:
        config = NotificationConfig()

        assert config.old_notification_days == 30
        assert config.preserve_read_state is False


class TestPaymentConfig:
    """Tests for PaymentConfig."""

    def test_default_values(self) -> None:
        config = PaymentConfig()

        assert config.currency_symbol == "₹"
        assert config.frequent_due_date_changes == 3
        assert config.review_due_date_changes == 5

    def test_frequent_threshold_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            PaymentConfig(frequent_due_date_changes=0)

    def test_review_below_frequent_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            PaymentConfig(frequent_due_date_changes=4, review_due_date_changes=2)


class TestOutputConfig:
    """Tests for OutputConfig."""

    def test_default_values(self) -> None:
        config = OutputConfig()

        assert config.json_output_dir == Path("output")
        assert config.pretty_json is False


class TestScenarioConfig:
    """Tests for ScenarioConfig."""

    def test_default_values(self) -> None:
        config = ScenarioConfig(name="test")

        assert config.num_invoices == 50
        assert config.delivery_rate == 0.30
        assert config.good_payer_rate == 0.60


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_default_values(self) -> None:
        config = EngineConfig()

        assert isinstance(config.notifications, NotificationConfig)
        assert isinstance(config.payments, PaymentConfig)
        assert config.scenario is None
        assert config.business_unit == "default"
        assert config.seed is None

    def test_from_env_default(self) -> None:
        """Test from_env with no environment variables set."""
        with patch.dict(os.environ, {}, clear=True):
            config = EngineConfig.from_env()

        assert config.notifications.old_notification_days == 30
        assert config.notifications.preserve_read_state is False
        assert config.payments.currency_symbol == "₹"
        assert config.output.json_output_dir == Path("output")
        assert config.recipient_id is None
        assert config.log_level == "INFO"

    def test_from_env_custom(self) -> None:
        """Test from_env with custom environment variables."""
        env = {
            "EMI_OLD_NOTIFICATION_DAYS": "14",
            "EMI_PRESERVE_READ_STATE": "true",
            "EMI_CURRENCY_SYMBOL": "Rs.",
            "EMI_FREQUENT_DUE_DATE_CHANGES": "2",
            "EMI_REVIEW_DUE_DATE_CHANGES": "4",
            "SEED": "7",
            "OUTPUT_DIR": "/tmp/emi",
            "PRETTY_JSON": "true",
            "EMI_BUSINESS_UNIT": "store-42",
            "EMI_RECIPIENT_ID": "owner-1",
            "LOG_LEVEL": "DEBUG",
            "LOG_FORMAT": "json",
        }
        with patch.dict(os.environ, env, clear=True):
            config = EngineConfig.from_env()

        assert config.notifications.old_notification_days == 14
        assert config.notifications.preserve_read_state is True
        assert config.payments.currency_symbol == "Rs."
        assert config.payments.frequent_due_date_changes == 2
        assert config.payments.review_due_date_changes == 4
        assert config.seed == 7
        assert config.output.json_output_dir == Path("/tmp/emi")
        assert config.output.pretty_json is True
        assert config.business_unit == "store-42"
        assert config.recipient_id == "owner-1"
        assert config.log_format == "json"

    def test_from_env_invalid_number(self) -> None:
        with patch.dict(os.environ, {"EMI_OLD_NOTIFICATION_DAYS": "soon"}, clear=True):
            with pytest.raises(ConfigurationError, match="Invalid numeric setting"):
                EngineConfig.from_env()


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_default(self) -> None:
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug(self) -> None:
        setup_logging(level="DEBUG")
        assert logging.getLogger("emi_engine").level == logging.DEBUG

    def test_setup_logging_invalid_level(self) -> None:
        """Unknown levels fall back to INFO."""
        setup_logging(level="INVALID")
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_json_format(self) -> None:
        setup_logging(format_type="json")

        logger = logging.getLogger()
        assert any(isinstance(h.formatter, JsonFormatter) for h in logger.handlers)

    def test_setup_logging_replaces_handlers(self) -> None:
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_faker_logger_quieted(self) -> None:
        setup_logging(level="DEBUG")
        assert logging.getLogger("faker").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, **kwargs) -> logging.LogRecord:
        defaults = dict(
            name="emi_engine.test",
            level=logging.INFO,
            pathname="/path/to/file.py",
            lineno=42,
            msg="Applied payment %s",
            args=("600.00",),
            exc_info=None,
        )
        defaults.update(kwargs)
        return logging.LogRecord(**defaults)

    def test_format_basic(self) -> None:
        data = json.loads(JsonFormatter().format(self._record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "emi_engine.test"
        assert data["message"] == "Applied payment 600.00"
        assert "timestamp" in data

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("Test error")
        except ValueError:
            import sys

            exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(self._record(exc_info=exc_info)))

        assert "exception" in data
        assert "ValueError" in data["exception"]

    def test_format_with_context(self) -> None:
        record = self._record()
        record.__dict__.update(log_context(invoice_id="inv-001", installment_number=2))

        data = json.loads(JsonFormatter().format(record))

        assert data["invoice_id"] == "inv-001"
        assert data["installment_number"] == 2

    def test_context_values_serialized(self) -> None:
        record = self._record()
        record.__dict__.update(
            log_context(payment_amount=Decimal("600.00"), due_date=date(2024, 2, 15))
        )

        data = json.loads(JsonFormatter().format(record))

        assert data["payment_amount"] == "600.00"
        assert data["due_date"] == "2024-02-15"

    def test_logger_extra_reaches_output(self, caplog: pytest.LogCaptureFixture) -> None:
        """Context passed through ``extra=`` on a real logger call is emitted."""
        with caplog.at_level(logging.INFO, logger="emi_engine"):
            logging.getLogger("emi_engine.test").info(
                "Moved installment", extra=log_context(invoice_id="inv-9", reason=None)
            )

        data = json.loads(JsonFormatter().format(caplog.records[-1]))
        assert data["invoice_id"] == "inv-9"
        assert "reason" not in data


class TestContextFormatter:
    """Tests for ContextFormatter."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord(
            "emi_engine.test", logging.INFO, "/path/to/file.py", 42, "Invoice fully paid", (), None
        )

    def test_plain_record(self) -> None:
        line = ContextFormatter().format(self._record())

        assert line.endswith("| INFO     | emi_engine.test | Invoice fully paid")

    def test_context_appended(self) -> None:
        record = self._record()
        record.__dict__.update(log_context(invoice_id="inv-001", installment_number=3))

        line = ContextFormatter().format(record)

        assert line.endswith("Invoice fully paid [invoice_id=inv-001 installment_number=3]")

    def test_setup_logging_uses_it(self) -> None:
        setup_logging()

        handler = logging.getLogger().handlers[0]
        assert isinstance(handler.formatter, ContextFormatter)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger(self) -> None:
        logger = get_logger("emi_engine.payments")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "emi_engine.payments"


class TestPackage:
    """Tests for package exports."""

    def test_version_exported(self) -> None:
        import emi_engine

        assert emi_engine.__version__ == "0.1.0"
