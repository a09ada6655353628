"""Observability helpers: structured logging, tracing spans and Prometheus metrics."""

from sutta_search.observability.context import corpus_context, get_trace_context, set_trace_context, trace_context
from sutta_search.observability.logging import JsonFormatter, configure_logging
from sutta_search.observability.metrics import (
    INDEX_OPENS,
    OPEN_INDEXES,
    SEARCH_FAILURES,
    SEARCH_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from sutta_search.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_OPENS",
    "OPEN_INDEXES",
    "SEARCH_FAILURES",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "corpus_context",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
