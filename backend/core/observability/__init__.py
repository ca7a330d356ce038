"""Minimal observability: JSON logging, health checks and in-process metrics."""
import uuid
from typing import Optional

from . import health, metrics
from . import logging as logging_module


def generate_trace_id() -> str:
    """Generate a new trace ID for request/CLI context."""
    return str(uuid.uuid4())


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Set (or generate) the trace ID used by the JSON formatter."""
    if not trace_id:
        trace_id = generate_trace_id()
    logging_module.set_trace_id(trace_id)
    return trace_id


def init_observability() -> None:
    logging_module.init_logging()


__all__ = [
    "logging_module",
    "health",
    "metrics",
    "generate_trace_id",
    "set_trace_id",
    "init_observability",
]
