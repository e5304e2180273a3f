"""
OpenTelemetry and Prometheus wiring.

``setup_opentelemetry`` runs once from the project app config when
``OBSERVABILITY_ENABLED`` is set. Until then ``get_tracer`` hands out the
API's no-op tracer, so handlers can open spans unconditionally.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

__all__ = ["Status", "StatusCode", "get_tracer", "setup_opentelemetry"]

_configured = False


def _build_tracer_provider():
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    resource = Resource.create(
        {
            "service.name": os.environ.get("OTEL_SERVICE_NAME", "key-inventory-service"),
            "service.version": os.environ.get("OTEL_SERVICE_VERSION", "1.0.0"),
            "deployment.environment": os.environ.get("ENVIRONMENT", "development"),
        }
    )
    provider = TracerProvider(resource=resource)
    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
    )
    return provider


def _start_metrics_server():
    from prometheus_client import start_http_server

    port = int(os.environ.get("PROMETHEUS_PORT", "9090"))
    try:
        start_http_server(port)
    except OSError as exc:
        # Another worker process already serves the port
        logger.warning("Prometheus exporter not started on port %s: %s", port, exc)
        return
    logger.info("Prometheus exporter listening on port %s", port)


def setup_opentelemetry():
    """
    Install the tracer provider, auto-instrument Django and psycopg2, and
    expose Prometheus metrics over HTTP. Safe to call more than once.
    """
    global _configured
    if _configured:
        return

    from opentelemetry.instrumentation.django import DjangoInstrumentor
    from opentelemetry.instrumentation.psycopg2 import Psycopg2Instrumentor

    trace.set_tracer_provider(_build_tracer_provider())
    DjangoInstrumentor().instrument()
    Psycopg2Instrumentor().instrument()
    _start_metrics_server()

    _configured = True
    logger.info("Tracing and metrics export configured")


def get_tracer(name: str):
    """
    Get a tracer for manual spans.

    Args:
        name: Tracer name, usually the module name

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)
