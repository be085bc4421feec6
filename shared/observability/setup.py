import os
import logging
import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

_tracing_configured = False

# Long-lived or probe routes that would only skew request latency histograms
UNMETERED_ROUTES = ["/metrics", "/health", "/events"]


# 1. Structlog Processor: tags each log line with the active trace, if any
def add_otel_ids(logger, log_method, event_dict):
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


# 2. Structlog: JSON lines, console-friendly when LOG_FORMAT=console
def configure_logging():
    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    if os.getenv("LOG_FORMAT", "json").lower() == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_otel_ids,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# 3. OpenTelemetry: one provider per process, spans exported only if OTLP_ENDPOINT is set
def configure_tracing(app: FastAPI, service_name: str):
    global _tracing_configured

    # Sub-apps mounted into one cluster share the provider
    if not _tracing_configured:
        resource = Resource.create({SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", service_name)})
        provider = TracerProvider(resource=resource)
        otlp_endpoint = os.getenv("OTLP_ENDPOINT")
        if otlp_endpoint:
            exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
            provider.add_span_processor(BatchSpanProcessor(exporter))
        trace.set_tracer_provider(provider)

        # Outgoing calls to the generation service and channel gateway
        HTTPXClientInstrumentor().instrument()
        _tracing_configured = True

    FastAPIInstrumentor.instrument_app(app, excluded_urls=",".join(UNMETERED_ROUTES))


# 4. Prometheus: per-app request metrics at /metrics
def configure_metrics(app: FastAPI):
    Instrumentator(excluded_handlers=UNMETERED_ROUTES).instrument(app).expose(app, include_in_schema=False)


def setup_observability(app: FastAPI, service_name: str):
    """
    Logging, tracing and request metrics for one FastAPI app.
    Called from every service's main.py; safe to call for several mounted apps.
    """
    configure_logging()
    configure_tracing(app, service_name)
    configure_metrics(app)
