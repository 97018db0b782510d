"""
Campus Feed API - role-aware community feed.

FastAPI application serving the unified post feed, tags, votes, comments,
alumni verification, and notification read-state.
"""

import asyncio
import contextlib
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from campus_feed.config import settings, validate_security_settings
from campus_feed.database import AsyncSessionLocal, init_db
from campus_feed.errors import FeedError, translate_db_error
from campus_feed.log_config import configure_logging
from campus_feed.middleware.rate_limit import limiter
from campus_feed.routers.comments import router as comments_router
from campus_feed.routers.notifications import router as notifications_router
from campus_feed.routers.posts import router as posts_router
from campus_feed.routers.tags import router as tags_router
from campus_feed.routers.verification import router as verification_router
from campus_feed.services.sweep import run_periodic_sweep

# Import models to register them with Base.metadata
from campus_feed import models  # noqa: F401

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001
    """Application lifespan handler for startup/shutdown."""
    validate_security_settings()
    await init_db()

    sweeper = None
    if settings.sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            run_periodic_sweep(AsyncSessionLocal, settings.sweep_interval_seconds)
        )
    yield
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(
    title="Campus Feed API",
    description="Unified community feed with role-aware authoring and alumni verification",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter state
app.state.limiter = limiter

# Rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Include routers
app.include_router(posts_router)
app.include_router(comments_router)
app.include_router(tags_router)
app.include_router(verification_router)
app.include_router(notifications_router)


# --- Middleware ---


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add a unique request ID to each request and log the request line."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "http request method=%s path=%s status=%s duration_ms=%.2f request_id=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
    )
    return response


# --- Exception Handlers ---


def _sanitize_error_detail(error: dict[str, Any]) -> dict[str, Any]:
    """Sanitize Pydantic error detail to be JSON-serializable."""
    sanitized = {}
    for key, value in error.items():
        if key == "ctx":
            # Context may contain non-serializable objects like ValueError
            sanitized[key] = {k: str(v) for k, v in value.items()} if isinstance(value, dict) else str(value)
        elif key == "loc":
            sanitized[key] = [str(loc) for loc in value]
        elif key == "input":
            continue
        else:
            sanitized[key] = value
    return sanitized


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with consistent error format."""
    request_id = getattr(request.state, "request_id", None)

    errors = [_sanitize_error_detail(e) for e in exc.errors()]
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", []))
        msg = first_error.get("msg", "Validation error")
        message = f"{field}: {msg}" if field else msg
    else:
        message = "Validation error"

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": message,
                "request_id": request_id,
                "details": errors,
            }
        },
    )


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
    """Render domain errors with their stable code."""
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(request_id))


@app.exception_handler(SQLAlchemyError)
async def datastore_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Translate storage failures to SchemaUnavailable or Datastore."""
    request_id = getattr(request.state, "request_id", None)
    translated = translate_db_error(exc)
    logger.error(
        "datastore error code=%s request_id=%s",
        translated.code,
        request_id,
        exc_info=exc,
    )
    return JSONResponse(status_code=translated.status_code, content=translated.to_dict(request_id))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent error format."""
    request_id = getattr(request.state, "request_id", None)
    logger.exception("unhandled error request_id=%s", request_id, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "request_id": request_id,
            }
        },
    )


# --- Health Check ---


@app.get("/api/v1/health", tags=["System"])
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns 200 OK if the API is running.
    """
    return {"status": "healthy"}
