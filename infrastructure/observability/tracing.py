"""
OpenTelemetry Tracing

Configures the tracer provider used by the marketplace services. Spans are
only exported when a console exporter is requested; otherwise they are kept
in-process for context propagation.
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

_initialized = False


def setup_tracing(service_name: str = "campusmarket-backend", console_export: bool = False, enable: bool = True) -> None:
    """
    Initialize OpenTelemetry tracing.

    Args:
        service_name: Name of the service for tracing
        console_export: Print finished spans to stdout
        enable: Enable/disable tracing
    """
    global _initialized

    if _initialized:
        logger.debug("Tracing already initialized. Skipping.")
        return

    if not enable:
        logger.info("Tracing disabled via configuration")
        return

    resource = Resource(attributes={SERVICE_NAME: service_name})
    tracer_provider = TracerProvider(resource=resource)

    if console_export:
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console span exporter enabled")

    trace.set_tracer_provider(tracer_provider)

    # Auto-instrument Django (traces all HTTP requests)
    DjangoInstrumentor().instrument()

    _initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")


def get_tracer(name: Optional[str] = None) -> trace.Tracer:
    """
    Get tracer instance for creating custom spans.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span("order.create") as span:
            span.set_attribute("order.buyer_id", str(user.id))
    """
    return trace.get_tracer(name or __name__)
