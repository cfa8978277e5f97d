"""Observability setup for OpenTelemetry, Prometheus metrics, and structured logging."""

import logging

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from .config import settings

SERVICE_NAME = "booking-availability-engine"

# Prometheus metrics
REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
BOOKING_REQUESTS = Counter(
    'booking_requests_total',
    'Booking requests by outcome',
    ['outcome'],
    registry=REGISTRY
)

RESERVATIONS_CONFIRMED = Counter(
    'reservations_confirmed_total',
    'Total reservations confirmed',
    registry=REGISTRY
)

RESERVATIONS_CANCELLED = Counter(
    'reservations_cancelled_total',
    'Total reservations cancelled',
    ['reason'],
    registry=REGISTRY
)

AVAILABILITY_QUERIES = Counter(
    'availability_queries_total',
    'Total availability queries',
    ['granularity'],
    registry=REGISTRY
)

ACTIVE_INTERVALS = Gauge(
    'availability_index_active_intervals',
    'Intervals currently held by pending or confirmed reservations',
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(app_name: str = SERVICE_NAME):
    """Setup OpenTelemetry tracing, exporting only when an OTLP endpoint is configured."""
    resource = Resource.create({
        "service.name": app_name,
        "service.version": "1.0.0",
        "environment": settings.environment,
    })

    provider = TracerProvider(resource=resource)
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)

    return trace.get_tracer(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine):
    """Instrument the SQLAlchemy engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for booking engine metrics."""

    @staticmethod
    def record_booking_request(outcome: str):
        """Record a booking request outcome: created, conflict, invalid, busy."""
        BOOKING_REQUESTS.labels(outcome=outcome).inc()

    @staticmethod
    def record_reservation_confirmed():
        RESERVATIONS_CONFIRMED.inc()

    @staticmethod
    def record_reservation_cancelled(reason: str):
        RESERVATIONS_CANCELLED.labels(reason=reason).inc()

    @staticmethod
    def record_availability_query(granularity: str):
        AVAILABILITY_QUERIES.labels(granularity=granularity).inc()

    @staticmethod
    def set_active_intervals(count: int):
        ACTIVE_INTERVALS.set(count)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
