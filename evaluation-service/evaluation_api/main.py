from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded as SlowapiRateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import repository
from .api import routes_evaluations, routes_instructors, routes_sentiment, routes_statistics
from .config import settings
from .database import Base, engine, ping
from .errors import EvaluationAPIError
from .rate_limit import limiter, run_periodic_sweep
from .seed import seed_reference_data
from .state import build_services
from .telemetry.logger import configure_logging

VERSION = "1.0.0"

configure_logging(settings)
logger = logging.getLogger("evaluations.api")

# Initialise database tables on startup
Base.metadata.create_all(bind=engine)

if settings.seed_on_startup:
    try:
        seed_reference_data()
    except Exception as exc:
        logger.warning("Reference data seeding failed: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = asyncio.create_task(
        run_periodic_sweep(app.state.services.sentiment_limiter, settings.rate_limit_sweep_seconds)
    )
    try:
        yield
    finally:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(
    title="Instructor Evaluation API",
    version=VERSION,
    description=(
        "Anonymous student evaluations of instructors and courses against a fixed "
        "five-question rubric, aggregate statistics per instructor and seminar, "
        "and an optional rate-limited, cached sentiment analysis passthrough."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.services = build_services(settings)
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------

def _error_response(status_code: int, kind: str, message: str, detail=None, extra=None, headers=None) -> JSONResponse:
    body = {"success": False, "error": kind, "message": message}
    if extra:
        body.update(extra)
    if detail and settings.diagnostics_enabled:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(EvaluationAPIError)
async def evaluation_api_error_handler(request: Request, exc: EvaluationAPIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.detail or exc.message)
    return _error_response(exc.status_code, exc.kind, exc.message, exc.detail, exc.extra, exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request.")
    if field:
        message = f"{field}: {message}"
    return _error_response(400, "ValidationError", message, detail=str(errors))


@app.exception_handler(SlowapiRateLimitExceeded)
async def slowapi_rate_limit_handler(request: Request, exc: SlowapiRateLimitExceeded) -> JSONResponse:
    return _error_response(
        429,
        "RateLimitExceeded",
        "Too many requests. Try again in a minute.",
        detail=str(exc.detail),
        extra={"retryAfterSeconds": 60},
        headers={"Retry-After": "60"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _error_response(
            404,
            "NotFoundError",
            f"Route {request.url.path} does not exist in this API.",
            extra={"availableEndpoints": {"home": "/", "docs": "/docs", "health": "/health"}},
        )
    return _error_response(exc.status_code, "HTTPError", str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "InternalError", "Internal server error.", detail=str(exc))


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(routes_instructors.router)
app.include_router(routes_evaluations.router)
app.include_router(routes_statistics.router)
app.include_router(routes_sentiment.router)


@app.get("/", tags=["meta"])
def root() -> dict:
    return {
        "success": True,
        "message": "Instructor Evaluation API",
        "data": {
            "version": VERSION,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "instructors": "/instructors",
                "questions": "/questions",
                "evaluations": "/evaluations",
                "statistics": "/statistics",
                "sentiments": "/sentiments",
            },
        },
    }


@app.get("/health", tags=["meta"])
def health() -> JSONResponse:
    """Liveness plus database reachability (503 when the database is down)."""
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        ping()
        instructors = repository.count_instructors()
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        data = {"status": "unhealthy", "timestamp": timestamp, "database": "disconnected"}
        if settings.diagnostics_enabled:
            data["error"] = str(exc)
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "ServiceUnavailable",
                     "message": "Database unreachable.", "data": data},
        )
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "message": "API is healthy.",
            "data": {"status": "healthy", "timestamp": timestamp,
                     "database": "connected", "instructors": instructors},
        },
    )
