"""Prometheus metrics utilities."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

metrics_registry = CollectorRegistry()

REQUEST_COUNTER = Counter(
    "warehouse_flow_api_requests_total",
    "Total number of API requests handled",
    registry=metrics_registry,
)

TRANSITION_COUNTER = Counter(
    "warehouse_flow_transitions_total",
    "Transition operations by outcome",
    labelnames=("operation", "outcome"),
    registry=metrics_registry,
)

VERSION_CONFLICT_COUNTER = Counter(
    "warehouse_flow_version_conflicts_total",
    "Guarded writes that lost a version race",
    labelnames=("operation",),
    registry=metrics_registry,
)

TRANSITION_DURATION = Histogram(
    "warehouse_flow_transition_seconds",
    "Duration of transition operations including store round trips",
    labelnames=("operation",),
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
    registry=metrics_registry,
)

_enabled = True


def set_metrics_enabled(enabled: bool) -> None:
    global _enabled
    _enabled = enabled


def record_transition(operation: str, outcome: str, seconds: float) -> None:
    """Record one finished transition operation."""

    if not _enabled:
        return
    TRANSITION_COUNTER.labels(operation=operation, outcome=outcome).inc()
    TRANSITION_DURATION.labels(operation=operation).observe(seconds)


def record_version_conflict(operation: str) -> None:
    if _enabled:
        VERSION_CONFLICT_COUNTER.labels(operation=operation).inc()
