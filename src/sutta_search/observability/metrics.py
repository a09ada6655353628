"""Prometheus metrics for corpus search."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


SEARCH_LATENCY = Histogram(
    "sutta_search_latency_seconds",
    "Corpus query latency",
    ["corpus", "method"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

SEARCH_FAILURES = Counter(
    "sutta_search_failures_total",
    "Corpus queries that failed and were reported as empty results",
    ["corpus", "method", "error_type"],
)

INDEX_OPENS = Counter(
    "sutta_search_index_opens_total",
    "Attempts to open a corpus artifact",
    ["corpus", "outcome"],
)

OPEN_INDEXES = Gauge(
    "sutta_search_open_indexes",
    "Corpus artifacts currently open",
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
