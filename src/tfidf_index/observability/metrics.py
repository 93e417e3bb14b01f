"""Prometheus metrics for indexing and search."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


DOCUMENTS_INGESTED = Counter(
    "tfidf_documents_ingested_total",
    "Documents seen by the indexer",
    ["outcome"],
)

POSTINGS_WRITTEN = Counter(
    "tfidf_postings_written_total",
    "Postings inserted or overwritten by the indexer",
)

STORE_ERRORS = Counter(
    "tfidf_store_errors_total",
    "Store failures surfaced to callers",
    ["component", "operation"],
)

INGEST_LATENCY = Histogram(
    "tfidf_ingest_latency_seconds",
    "Latency of one ingest call",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

SEARCH_LATENCY = Histogram(
    "tfidf_search_latency_seconds",
    "Search query latency",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        target = histogram.labels(**labels) if labels else histogram
        target.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
