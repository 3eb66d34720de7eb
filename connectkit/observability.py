"""
Library observability — OpenTelemetry tracing + Prometheus connector metrics.

Provides:
- Tracing spans per connector operation (get_entity, get_entity_page, writes)
- Request counters and latency histograms per connector/method/status
- Prometheus scraping utilities
"""

import os
import time
from contextlib import contextmanager
from typing import Generator

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

logger = structlog.get_logger(__name__)

# ── OpenTelemetry Setup ──────────────────────────────────────────────

_tracer: trace.Tracer | None = None


def setup_tracing(
    service_name: str | None = None,
    otlp_endpoint: str | None = None,
    console: bool = False,
) -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing.

    Exporter hierarchy:
      1. OTLP endpoint provided → OTLPSpanExporter
      2. console=True → ConsoleSpanExporter (local debugging)
      3. Default → provider without exporters (spans are dropped)

    Args:
        service_name: Name of the service (appears in traces).
                      Defaults to OTEL_SERVICE_NAME or APP_NAME.
        otlp_endpoint: OTLP collector endpoint.
        console: Print finished spans to stdout.
    """
    global _tracer

    from connectkit.version import APP_NAME, VERSION

    if service_name is None:
        service_name = os.getenv("OTEL_SERVICE_NAME", APP_NAME.lower())

    resource = Resource.create({"service.name": service_name, "service.version": VERSION})
    provider = TracerProvider(resource=resource)

    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )

            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
            logger.info("otel_otlp_configured", endpoint=otlp_endpoint)
        except ImportError:
            logger.warning("otel_otlp_unavailable_fallback_console")
            provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif console:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(__name__)
    logger.info("otel_tracing_initialized", service=service_name)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Tracer from the globally configured provider (no-op until one is set)."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(__name__)
    return _tracer


@contextmanager
def trace_connector_call(
    connector_name: str, operation: str, entity: str | None = None, **attributes
) -> Generator:
    """
    Context manager to trace one connector operation.

    Usage:
        with trace_connector_call("slack", "get_entity", entity="channels"):
            records = await ...
    """
    tracer = get_tracer()
    with tracer.start_as_current_span(
        f"connector.{connector_name}.{operation}",
        attributes={
            "connector.name": connector_name,
            "connector.operation": operation,
            "connector.entity": entity or "",
            **{k: str(v) for k, v in attributes.items()},
        },
    ) as span:
        start = time.monotonic()
        try:
            yield span
            span.set_attribute("connector.status", "success")
        except Exception as e:
            span.set_attribute("connector.status", "error")
            span.set_attribute("connector.error", str(e))
            span.record_exception(e)
            raise
        finally:
            latency = (time.monotonic() - start) * 1000
            span.set_attribute("connector.latency_ms", round(latency))


# ── Connector Metrics ────────────────────────────────────────────────

CONNECTOR_REQUESTS = Counter(
    "connector_requests_total",
    "Total HTTP requests issued by connectors",
    ["connector", "method", "status"],
    namespace="connectkit",
)

CONNECTOR_LATENCY = Histogram(
    "connector_latency_seconds",
    "Connector HTTP request latency",
    ["connector", "method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10],
    namespace="connectkit",
)


def record_request(connector_name: str, method: str, status: int | str, latency_s: float) -> None:
    """Record one HTTP request in the Prometheus counters."""
    CONNECTOR_REQUESTS.labels(connector=connector_name, method=method, status=str(status)).inc()
    CONNECTOR_LATENCY.labels(connector=connector_name, method=method).observe(latency_s)


# ── Prometheus Scraping ──────────────────────────────────────────────


def get_metrics() -> bytes:
    """Generate Prometheus metrics for scraping."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Content type for Prometheus metrics response."""
    return CONTENT_TYPE_LATEST
