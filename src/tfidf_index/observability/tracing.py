"""OpenTelemetry tracing helpers."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode

from tfidf_index.observability.context import set_trace_context, span_ids, trace_context


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

SERVICE_NAME = "tfidf-index"

# Module-level tracer storage; the provider is installed once per process
_tracer_holder: dict[str, Any] = {"tracer": None, "provider": None}


def init_tracing(
    service_name: str = SERVICE_NAME,
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    """Initialize OpenTelemetry tracing with a local tracer provider.

    OpenTelemetry accepts a global provider only once, so later calls return
    the provider installed by the first one.
    """
    if _tracer_holder["provider"] is not None:
        return _tracer_holder["provider"]

    attributes = {"service.name": service_name}
    if resource_attributes:
        attributes.update(resource_attributes)
    provider = TracerProvider(resource=Resource.create(attributes))
    trace.set_tracer_provider(provider)
    _tracer_holder["provider"] = provider
    _tracer_holder["tracer"] = provider.get_tracer(__name__)
    logger.debug("Tracing initialized for service: %s", service_name)
    return provider


def use_tracer_provider(provider: TracerProvider) -> None:
    """Route spans to ``provider`` (tests attach in-memory exporters this way)."""
    _tracer_holder["tracer"] = provider.get_tracer(__name__)


def get_tracer() -> Tracer:
    """Get the configured tracer."""
    if _tracer_holder["tracer"] is None:
        _tracer_holder["tracer"] = trace.get_tracer(__name__)
    return _tracer_holder["tracer"]  # type: ignore[return-value]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a traced span and expose its ids to the log formatter."""
    tracer = get_tracer()
    with tracer.start_as_current_span(name, kind=kind, record_exception=False, set_status_on_exception=False) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, value)

        previous = trace_context.get()
        if span.get_span_context().is_valid:
            set_trace_context(*span_ids(span))

        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            trace_context.set(previous)
