"""
Idempotent Prometheus collector registration.

Metric modules may be imported more than once in one process (uvicorn
--reload, repeated application factories in tests). Registering the same
name twice makes prometheus_client raise ValueError, so the helpers hand
back the collector that already owns the name instead.
"""

from typing import TypeVar

from prometheus_client import REGISTRY, Counter, Gauge, Histogram
from prometheus_client.metrics import MetricWrapperBase

Collector = TypeVar("Collector", bound=MetricWrapperBase)


def _get_or_create(
    metric_class: type[Collector], name: str, doc: str, **kwargs
) -> Collector:
    try:
        return metric_class(name, doc, **kwargs)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _get_or_create_counter(
    name: str, doc: str, labels: list[str] | None = None
) -> Counter:
    return _get_or_create(Counter, name, doc, labelnames=labels or ())


def _get_or_create_gauge(
    name: str, doc: str, labels: list[str] | None = None
) -> Gauge:
    return _get_or_create(Gauge, name, doc, labelnames=labels or ())


def _get_or_create_histogram(
    name: str,
    doc: str,
    labels: list[str] | None = None,
    buckets: tuple[float, ...] = Histogram.DEFAULT_BUCKETS,
) -> Histogram:
    """Histogram variant; `buckets` defaults to prometheus_client's."""
    return _get_or_create(
        Histogram, name, doc, labelnames=labels or (), buckets=buckets
    )
