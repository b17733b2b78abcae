"""Observability setup for OpenTelemetry, Prometheus metrics, and structured logging."""

import logging

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "villa-booking-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    registry=REGISTRY
)

# Business metrics
BOOKINGS_CREATED = Counter(
    "villa_bookings_created_total",
    "Total bookings created",
    ["source"],
    registry=REGISTRY
)

BOOKING_STATUS_CHANGES = Counter(
    "villa_booking_status_changes_total",
    "Booking status transitions applied",
    ["from_status", "to_status"],
    registry=REGISTRY
)

INVENTORY_MOVEMENTS = Counter(
    "villa_inventory_movements_total",
    "Inventory movements recorded",
    ["type"],
    registry=REGISTRY
)

NOTIFICATIONS_SENT = Counter(
    "villa_notifications_total",
    "Outbound notifications by channel and outcome",
    ["channel", "outcome"],
    registry=REGISTRY
)

LOGIN_ATTEMPTS = Counter(
    "villa_login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],
    registry=REGISTRY
)

ACTIVE_SESSIONS = Gauge(
    "villa_active_sessions",
    "Unexpired login sessions after the last cleanup",
    registry=REGISTRY
)


def setup_structured_logging() -> None:
    """Configure structlog, binding request context from contextvars."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing():
    """Setup OpenTelemetry tracing, exporting over OTLP when an endpoint is configured."""
    provider = TracerProvider(resource=_resource())
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics():
    """Setup OpenTelemetry metrics."""
    if settings.otlp_endpoint:
        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=settings.otlp_endpoint),
            export_interval_millis=60000,
        )
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))
    return metrics.get_meter(__name__)


def instrument_fastapi(app) -> None:
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine) -> None:
    """Instrument the SQLAlchemy engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_booking_created(source: str):
        BOOKINGS_CREATED.labels(source=source).inc()

    @staticmethod
    def record_status_change(from_status: str, to_status: str):
        BOOKING_STATUS_CHANGES.labels(from_status=from_status, to_status=to_status).inc()

    @staticmethod
    def record_inventory_movement(movement_type: str):
        INVENTORY_MOVEMENTS.labels(type=movement_type).inc()

    @staticmethod
    def record_notification(channel: str, delivered: bool):
        """Record the outcome of one email, SMS or WhatsApp send."""
        NOTIFICATIONS_SENT.labels(channel=channel, outcome="sent" if delivered else "failed").inc()

    @staticmethod
    def record_login(success: bool):
        LOGIN_ATTEMPTS.labels(outcome="success" if success else "failure").inc()

    @staticmethod
    def set_active_sessions(count: int):
        ACTIVE_SESSIONS.set(count)


def get_prometheus_metrics() -> bytes:
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_logger(name: str):
    """Get a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
