"""In-process metrics counters and histograms."""

import time
from collections import defaultdict
from typing import Any, Optional

from backend.core.config import settings

_metrics = defaultdict(lambda: {"count": 0, "sum": 0.0, "values": []})


def _key(name: str, labels: Optional[dict[str, str]]) -> str:
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={v}" for k, v in sorted(labels.items())) + "}"


def increment_counter(name: str, labels: Optional[dict[str, str]] = None, value: float = 1.0) -> None:
    """Increment a counter metric."""
    if not settings.enable_metrics:
        return
    _metrics[_key(name, labels)]["count"] += value


def record_histogram(name: str, value: float, labels: Optional[dict[str, str]] = None) -> None:
    """Record a histogram measurement."""
    if not settings.enable_metrics:
        return
    metric = _metrics[_key(name, labels)]
    metric["count"] += 1
    metric["sum"] += value
    metric["values"].append(value)


def observe_duration(start_time: float, name: str, labels: Optional[dict[str, str]] = None) -> None:
    """Observe a duration in milliseconds since ``start_time`` (``time.perf_counter``)."""
    record_histogram(name, (time.perf_counter() - start_time) * 1000, labels)


def get_metrics() -> dict[str, Any]:
    """Get current metrics snapshot."""
    if not settings.enable_metrics:
        return {"note": "metrics disabled"}

    result = {}
    for key, data in _metrics.items():
        entry = {"count": data["count"], "sum": data["sum"]}
        values = data["values"]
        if values:
            entry.update({"min": min(values), "max": max(values), "avg": data["sum"] / len(values)})
        result[key] = entry
    return result


def reset_metrics() -> None:
    """Reset all metrics (useful for testing)."""
    _metrics.clear()


def increment_invoices_created() -> None:
    increment_counter("invoices_created_total")


def increment_invoices_published() -> None:
    increment_counter("invoices_published_total")


def increment_totals_drift() -> None:
    increment_counter("invoice_totals_drift_total")
