"""JSON structured logging with mandatory fields and PII redaction."""
import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Optional

from backend.core.config import settings
from backend.core.logging import redact_pii

# Thread-local storage for context
_context = threading.local()

_RESERVED_ATTRS = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "message", "taskName",
    )
)

# ids and money figures are never redacted
_STRUCTURED_EXTRAS = frozenset(
    (
        "invoice_id", "customer_id", "rate_modifier_id", "duplicate_id",
        "total", "computed", "rederived", "line_count", "tax_mode",
        "rounding_mode", "format", "dialect", "is_default", "fields",
    )
)


class JSONFormatter(logging.Formatter):
    """JSON formatter with mandatory fields and PII redaction."""

    def format(self, record):
        trace_id = getattr(_context, "trace_id", None) or "unknown"
        request_id = getattr(_context, "request_id", None)

        log_entry = {
            "trace_id": trace_id,
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": redact_pii(record.getMessage()),
            "ts_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

        if request_id:
            log_entry["request_id"] = request_id

        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)

        # free-text extra= fields are redacted when they are strings
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_entry:
                continue
            log_entry[key] = value if key in _STRUCTURED_EXTRAS else redact_pii(value)

        return json.dumps(log_entry, default=str)


def set_trace_id(trace_id: Optional[str]) -> None:
    """Set trace ID for current thread context."""
    _context.trace_id = trace_id


def set_request_id(request_id: Optional[str]) -> None:
    """Set request ID for current thread context."""
    _context.request_id = request_id


def init_logging(level: Optional[str] = None) -> None:
    """Initialize JSON logging on the root logger."""
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, (level or settings.log_level).upper(), logging.INFO))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get logger with JSON formatting."""
    return logging.getLogger(name)
