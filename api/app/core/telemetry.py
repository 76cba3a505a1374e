"""
Telemetry module for OpenTelemetry tracing.

Configures distributed tracing for the search and completion pipeline.
"""

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

SERVICE_NAME = "search-chat-api"

_tracer: trace.Tracer | None = None


def setup_telemetry(console_export: bool = False) -> None:
    """
    Initialize OpenTelemetry tracing.

    Args:
        console_export: When True, finished spans are printed to stdout.
                        Otherwise spans are recorded but not exported.
    """
    global _tracer

    resource = Resource.create({"service.name": SERVICE_NAME})
    provider = TracerProvider(resource=resource)

    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console span export enabled.")
    else:
        logger.info("Telemetry export disabled.")

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(SERVICE_NAME)


def get_tracer() -> trace.Tracer:
    """Return the application tracer, initializing a no-op if not set up."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SERVICE_NAME)
    return _tracer
