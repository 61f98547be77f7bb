"""OpenTelemetry tracing setup and utilities.

Spans wrap the XML-RPC calls and the placement check. Tracing is only
exported when OTEL_EXPORT_CONSOLE is enabled; otherwise the API falls
back to its no-op tracer.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME, SERVICE_VERSION

from oneinv.config import settings
from oneinv import __version__

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Optional[trace.Tracer] = None


def setup_telemetry() -> None:
    """Initialize OpenTelemetry tracing.

    Call once at startup, before any span is created.
    """
    global _tracer

    resource = Resource(
        attributes={
            SERVICE_NAME: settings.OTEL_SERVICE_NAME,
            SERVICE_VERSION: __version__,
            "environment": settings.ENVIRONMENT,
        }
    )

    sampler = TraceIdRatioBased(settings.OTEL_TRACE_SAMPLE_RATE)
    provider = TracerProvider(resource=resource, sampler=sampler)

    if settings.OTEL_EXPORT_CONSOLE:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(__name__, __version__)

    logger.info(
        "OpenTelemetry initialized",
        extra={
            "service_name": settings.OTEL_SERVICE_NAME,
            "sample_rate": settings.OTEL_TRACE_SAMPLE_RATE,
            "export_console": settings.OTEL_EXPORT_CONSOLE,
        },
    )


def get_tracer() -> trace.Tracer:
    """Get the global tracer instance.

    Returns:
        OpenTelemetry Tracer instance
    """
    global _tracer

    if _tracer is None:
        _tracer = trace.get_tracer(__name__, __version__)

    return _tracer


@contextmanager
def trace_operation(
    name: str,
    attributes: Optional[dict] = None,
):
    """Context manager for creating a traced operation span.

    Args:
        name: Name of the operation (e.g., 'placement.check')
        attributes: Optional dictionary of span attributes
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(name) as span:
        if attributes:
            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)

        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def add_span_attributes(**attributes) -> None:
    """Add attributes to the current span.

    Args:
        **attributes: Key-value pairs to add as span attributes
    """
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)


def add_span_event(name: str, attributes: Optional[dict] = None) -> None:
    """Add an event to the current span.

    Args:
        name: Event name
        attributes: Optional event attributes
    """
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes or {})
