"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

STORE_LATENCY = Histogram(
    "nextrade_store_latency_seconds",
    "Latency of document store calls",
    labelnames=("operation",),
    buckets=(0.005, 0.01, 0.02, 0.04, 0.08, 0.16, 0.32, 0.64, 1.28, 2.56),
    registry=REGISTRY,
)

STORE_ERRORS = Counter(
    "nextrade_store_errors_total",
    "Number of failed document store calls",
    labelnames=("operation",),
    registry=REGISTRY,
)

ITEMS_CREATED = Counter(
    "nextrade_items_created_total",
    "Number of items inserted",
    registry=REGISTRY,
)


def observe_store_call(*, operation: str, latency_ms: float, failed: bool) -> None:
    STORE_LATENCY.labels(operation=operation).observe(latency_ms / 1000.0)
    if failed:
        STORE_ERRORS.labels(operation=operation).inc()


def observe_item_created() -> None:
    ITEMS_CREATED.inc()


def render_metrics() -> tuple[bytes, str]:
    payload = generate_latest(REGISTRY)
    return payload, CONTENT_TYPE_LATEST
