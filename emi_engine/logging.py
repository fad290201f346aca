"""Logging setup for emi-engine.

Engine modules log through ``logging.getLogger(__name__)``. Payment and
schedule operations attach the invoice and installment they touched with
``extra=log_context(invoice_id=..., installment_number=...)``; the
standard format appends that context to the line and the JSON format
emits it as top-level keys.
"""

import json
import logging
import sys
from datetime import date, datetime, timezone
from typing import Any

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log locale lookups at DEBUG
QUIET_LOGGERS = ("faker",)


def log_context(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` mapping for a log call; ``None`` values are dropped."""
    return {"context": {key: value for key, value in fields.items() if value is not None}}


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "context", None) or {}


def _json_default(value: Any) -> str:
    # Decimal amounts and anything else unknown to json become strings
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class ContextFormatter(logging.Formatter):
    """Standard text format with invoice context appended in brackets."""

    def __init__(self) -> None:
        super().__init__(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, invoice context merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=_json_default, ensure_ascii=False)


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Route emi-engine logs to stdout.

    Parameters
    ----------
    level : str
        Log level name; unknown names fall back to INFO.
    format_type : str
        ``"standard"`` for text lines, ``"json"`` for one object per line.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JsonFormatter() if format_type == "json" else ContextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logging.getLogger("emi_engine").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, for scripts outside the package."""
    return logging.getLogger(name)
