"""Observability module: structured logging, tracing and metrics."""

from tfidf_index.observability.context import get_trace_context, set_trace_context, trace_context
from tfidf_index.observability.logging import JsonFormatter, configure_logging
from tfidf_index.observability.metrics import (
    DOCUMENTS_INGESTED,
    INGEST_LATENCY,
    POSTINGS_WRITTEN,
    SEARCH_LATENCY,
    STORE_ERRORS,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from tfidf_index.observability.tracing import create_span, get_tracer, init_tracing, use_tracer_provider


__all__ = [
    "DOCUMENTS_INGESTED",
    "INGEST_LATENCY",
    "POSTINGS_WRITTEN",
    "SEARCH_LATENCY",
    "STORE_ERRORS",
    "JsonFormatter",
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
    "use_tracer_provider",
]
