"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from tanlink.api.public import drain_background_tasks
from tanlink.api.public import router as public_router
from tanlink.api.v1.router import router as v1_router
from tanlink.core.config import get_settings
from tanlink.core.database import close_db
from tanlink.core.errors import TRANSIENT_DB_ERRORS, TanLinkError
from tanlink.core.middleware import SecurityHeadersMiddleware
from tanlink.core.observability import RequestContextMiddleware, setup_observability
from tanlink.core.rate_limit import limiter
from tanlink.core.redis import close_redis

settings = get_settings()

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting TanLink API", version=settings.app_version)
    yield
    logger.info("Shutting down TanLink API")
    await drain_background_tasks()
    await close_redis()
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Link-in-bio profiles with view and click analytics",
    lifespan=lifespan,
)

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)

# Rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(TanLinkError)
async def tanlink_error_handler(request: Request, exc: TanLinkError) -> JSONResponse:
    """Map domain errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Transport failures that escaped a service surface as 503."""
    logger.error("Store unavailable", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Service temporarily unavailable"},
    )


for error_class in TRANSIENT_DB_ERRORS:
    app.add_exception_handler(error_class, store_unavailable_handler)

# Middleware stack (last added = outermost)

# Request ID, access log and HTTP metrics
app.add_middleware(RequestContextMiddleware)

# Security headers middleware
app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=not settings.debug,
)

# Session middleware (OAuth state and onboarding progress)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="tanlink_session",
    max_age=60 * 60 * 24,
    same_site="lax",
    https_only=not settings.debug,
)

# CORS middleware (outermost, answers preflights first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "X-Request-ID"],
)

app.include_router(v1_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Welcome to TanLink API", "version": settings.app_version}


# Public router last so /api/v1/*, /metrics and the docs take precedence
# over the /{handle} catch-all
app.include_router(public_router)
