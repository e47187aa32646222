"""Observability: structured logs, request context, metrics, tracing and Sentry.

Every request gets an ID that is bound into the structlog context, echoed
in the `X-Request-ID` header and counted in Prometheus under a templated
endpoint label. Public profile paths are collapsed to `/{handle}` so each
visitor page does not become its own time series.
"""

import logging
import time
import uuid
from typing import Any

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, Response
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tanlink.core.config import get_settings
from tanlink.core.errors import TanLinkError

settings = get_settings()

# Probed constantly; logged at debug only
QUIET_PATHS = frozenset({"/metrics", "/api/v1/health"})

# Prometheus metrics - HTTP
REQUEST_COUNT = Counter(
    "tanlink_http_requests_total",
    "HTTP requests by templated endpoint",
    ["method", "endpoint", "status_code"],
)

REQUEST_LATENCY = Histogram(
    "tanlink_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Prometheus metrics - owner operations
LINK_OPERATIONS = Counter(
    "tanlink_link_operations_total",
    "Link mutations",
    ["operation"],  # create, update, delete, reorder, move
)

HANDLE_CLAIMS = Counter(
    "tanlink_handle_claims_total",
    "Handle claim attempts",
    ["outcome"],  # claimed, unchanged, conflict
)

ORDER_REPAIRS = Counter(
    "tanlink_link_order_repairs_total",
    "Link order sets that had to be recomputed",
)

# Prometheus metrics - analytics side channel
ANALYTICS_EVENTS = Counter(
    "tanlink_analytics_events_recorded_total",
    "Views and clicks recorded",
    ["kind"],  # view, click
)

ANALYTICS_FAILURES = Counter(
    "tanlink_analytics_events_failed_total",
    "Views and clicks that could not be recorded",
    ["kind"],
)


def normalize_endpoint(path: str) -> str:
    """Collapse path parameters so metric labels stay low-cardinality."""
    if path.startswith("/api/v1/links/"):
        return "/api/v1/links/{id}"
    if path.startswith("/api/v1/onboarding/"):
        return "/api/v1/onboarding/{action}"
    if path.startswith("/api/") or path in ("/", "/metrics", "/docs", "/openapi.json"):
        return path
    if "/links/" in path and path.endswith("/click"):
        return "/{handle}/links/{id}/click"
    return "/{handle}"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns the request ID, logs the request and records HTTP metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        endpoint = normalize_endpoint(request.url.path)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            endpoint=endpoint,
        )
        logger = structlog.get_logger()
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request crashed", path=request.url.path)
            REQUEST_COUNT.labels(request.method, endpoint, 500).inc()
            raise

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id

        if response.status_code >= 500:
            log = logger.error
        elif request.url.path in QUIET_PATHS:
            log = logger.debug
        else:
            log = logger.info
        log(
            "Request completed",
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            client_ip=request.client.host if request.client else None,
        )

        REQUEST_COUNT.labels(request.method, endpoint, response.status_code).inc()
        REQUEST_LATENCY.labels(request.method, endpoint).observe(duration)
        return response


def add_service_info(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", "tanlink-api")
    event_dict.setdefault("version", settings.app_version)
    return event_dict


def configure_structlog() -> None:
    """JSON logs in production, coloured console output when `log_json` is off."""
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_service_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level)
    # Requests are already logged by RequestContextMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def drop_domain_errors(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """Sentry hook: 4xx domain errors are client mistakes, not bugs."""
    exc_info = hint.get("exc_info")
    if exc_info and isinstance(exc_info[1], TanLinkError) and exc_info[1].status_code < 500:
        return None
    return event


def setup_sentry() -> None:
    if not settings.sentry_dsn:
        structlog.get_logger().info("Sentry disabled (no DSN configured)")
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        release=f"tanlink@{settings.app_version}",
        environment="development" if settings.debug else "production",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        before_send=drop_domain_errors,
        send_default_pii=False,
    )
    structlog.get_logger().info("Sentry configured")


def setup_opentelemetry(app: FastAPI) -> None:
    if not settings.otlp_endpoint:
        structlog.get_logger().info("OpenTelemetry disabled (no OTLP endpoint configured)")
        return

    resource = Resource(attributes={
        SERVICE_NAME: "tanlink-api",
        SERVICE_VERSION: settings.app_version,
    })
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        BatchSpanProcessor(
            OTLPSpanExporter(endpoint=settings.otlp_endpoint, insecure=settings.otlp_insecure)
        )
    )
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(
        app,
        excluded_urls=",".join(path.lstrip("/") for path in sorted(QUIET_PATHS)),
    )
    structlog.get_logger().info("OpenTelemetry configured", otlp_endpoint=settings.otlp_endpoint)


def setup_observability(app: FastAPI) -> None:
    """Configure logging, Sentry and tracing, and mount `/metrics`."""
    configure_structlog()
    setup_sentry()
    setup_opentelemetry(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type="text/plain; charset=utf-8")


def record_link_operation(operation: str) -> None:
    LINK_OPERATIONS.labels(operation=operation).inc()


def record_handle_claim(outcome: str) -> None:
    HANDLE_CLAIMS.labels(outcome=outcome).inc()


def record_order_repair() -> None:
    ORDER_REPAIRS.inc()


def record_analytics_event(kind: str) -> None:
    """Record a successfully stored view or click."""
    ANALYTICS_EVENTS.labels(kind=kind).inc()


def record_analytics_failure(kind: str) -> None:
    """Record a view or click that was dropped."""
    ANALYTICS_FAILURES.labels(kind=kind).inc()
