"""Context propagation for log correlation across threads and async tasks."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Get current trace context with trace_id and span_id."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str, **extra: object) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id, **extra})


def update_span_id(span_id: str) -> None:
    """Update span_id while preserving trace_id and extra fields."""
    ctx = trace_context.get() or {}
    trace_context.set({**ctx, "span_id": span_id})


@contextmanager
def corpus_context(corpus: str) -> Iterator[None]:
    """Tag log lines emitted inside the block with a ``language/author`` corpus."""
    ctx = get_trace_context()
    token = trace_context.set({**ctx, "corpus": corpus})
    try:
        yield
    finally:
        trace_context.reset(token)
