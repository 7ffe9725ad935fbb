"""
CaddieAI Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       lifespan() owns startup checks, the voice-session sweep and shutdown.
Who:   uvicorn (`uvicorn caddie.main:app`) and the API tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐      │
    │  │   Req ID     │→│Rate Limit│→│  Logging        │      │
    │  └──────────────┘ └──────────┘ └─────────────────┘      │
    │                                                         │
    │  Routes:                                                │
    │  /api/courses  /api/users/{id}/courses  /api/shots      │
    │  /api/users/{id}/context  /api/realtime  /health        │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400  Authz→403  NotFound→404  Conflict→409  │
    │  SessionLimit/RateLimit→429  DB→500  Email/Circuit→503  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → voice-session sweep task
    Shutdown: cancel sweep → dispose database engine
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from caddie import __version__
from caddie.config import settings
from caddie.database import dispose_engine
from caddie.exceptions import (
    AuthorizationError,
    CaddieError,
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    EmailDeliveryError,
    NotFoundError,
    RateLimitExceededError,
    SessionLimitError,
    ValidationError,
)
from caddie.middleware.logging import RequestLoggingMiddleware
from caddie.middleware.rate_limit import RateLimitMiddleware
from caddie.middleware.request_id import RequestIDMiddleware, request_id_var
from caddie.routes import context, courses, health, realtime, shots, user_courses
from caddie.services.realtime_audio_service import realtime_audio_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: timestamp, level, logger name, message. The access logger adds
    request_id/method/path/status as `extra` fields for log shippers.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-query and per-request chatter
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("CaddieAI Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Course and shot endpoints still work without SMTP
        logger.warning("Configuration warning: %s", str(e))

    sweep_task = asyncio.create_task(realtime_audio_service.run_cleanup_loop())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("CaddieAI Backend shutting down...")

    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass

    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Client-fixable errors: message and context are safe to return
CLIENT_ERRORS = {
    ValidationError: (400, "validation_error"),
    AuthorizationError: (403, "forbidden"),
    NotFoundError: (404, "not_found"),
    ConflictError: (409, "conflict"),
    SessionLimitError: (429, "session_limit_exceeded"),
}


def _error_body(error: str, message: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details,
        "request_id": request_id_var.get("") or None,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the CaddieError hierarchy onto HTTP responses.

    5xx handlers never return `context`; it is logged server-side instead.
    """

    async def handle_client_error(request: Request, exc: CaddieError):
        status, code = CLIENT_ERRORS[type(exc)]
        rid = request_id_var.get("")
        logger.warning("[%s] %s: %s", rid, code, exc.message)
        return JSONResponse(status_code=status, content=_error_body(code, exc.message, exc.context or None))

    for exc_type in CLIENT_ERRORS:
        app.add_exception_handler(exc_type, handle_client_error)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        rid = request_id_var.get("")
        logger.warning("[%s] Circuit breaker open: %s", rid, exc.message)
        return JSONResponse(
            status_code=503,
            content=_error_body("service_unavailable", exc.message, {"recovery_time": exc.recovery_time}),
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(EmailDeliveryError)
    async def handle_email_error(request: Request, exc: EmailDeliveryError):
        rid = request_id_var.get("")
        logger.error("[%s] Email delivery error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=503, content=_error_body("email_unavailable", exc.message))

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content=_error_body("server_error", exc.message))

    @app.exception_handler(CaddieError)
    async def handle_caddie_error(request: Request, exc: CaddieError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="CaddieAI API",
        description=(
            "Backend for the CaddieAI golf caddie app: course catalogue and geo lookups, "
            "shot analysis, caddie context and realtime voice sessions."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware runs in reverse order of addition:
    # RequestID → RateLimit → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(courses.router)
    app.include_router(user_courses.router)
    app.include_router(shots.router)
    app.include_router(context.router)
    app.include_router(realtime.router)
    app.include_router(health.router)

    return app


app = create_app()
