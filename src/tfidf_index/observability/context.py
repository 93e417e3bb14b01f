"""Trace ids shared between spans and log records.

``create_span`` stores the active span's ids here; ``JsonFormatter`` reads
them so every log line emitted during an ingest or search carries the ids of
the span it ran under. Outside a span a random pair is minted once per context.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from opentelemetry.trace import Span

trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def get_trace_context() -> dict:
    """Return ``{"trace_id", "span_id"}`` for the current context."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": uuid4().hex, "span_id": uuid4().hex[:16]}
        trace_context.set(ctx)
    return ctx


def set_trace_context(trace_id: str, span_id: str) -> None:
    trace_context.set({"trace_id": trace_id, "span_id": span_id})


def span_ids(span: Span) -> tuple[str, str]:
    """Hex trace and span ids of an OpenTelemetry span."""
    ctx = span.get_span_context()
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")
