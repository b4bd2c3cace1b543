"""
FieldSync Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       `app` is the module-level instance uvicorn serves; run() is the
       `fieldsync` console entry point.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ POST /login  │ │ POST         │ │ GET /health │  │
    │  │ POST         │ │ /sync-report │ │ GET /       │  │
    │  │ /register    │ │ GET          │ │             │  │
    │  │              │ │ /get-reports │ │             │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  Exception Handlers (envelope {success:false,...}): │
    │  Validation→400 │ Auth→401 │ Conflict→409 │ DB→500  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check (abort without DATABASE_URL)
              → engine + pool
    Shutdown: dispose engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fieldsync import __version__
from fieldsync.config import settings
from fieldsync.database import dispose_engine, init_engine
from fieldsync.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FieldSyncError,
    ValidationError,
)
from fieldsync.middleware.logging import RequestLoggingMiddleware
from fieldsync.middleware.rate_limit import RateLimitMiddleware
from fieldsync.middleware.request_id import RequestIDMiddleware, request_id_var
from fieldsync.routes import health, inspectors, reports

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] fieldsync.services.report_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup refuses to continue without datastore credentials: the
    ValueError propagates and uvicorn aborts with "Application startup failed".
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("FieldSync Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.critical("Configuration error: %s", str(e))
        logger.critical("Refusing to start. Fix the configuration and restart the server.")
        raise

    init_engine()
    logger.info("Datastore engine ready")
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("FieldSync Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _envelope(
    status_code: int,
    message: str,
    error: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content = {"success": False, "message": message}
    if error:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Handler table:
        ValidationError         → 400
        RequestValidationError  → 400 (malformed JSON / wrong body shape)
        AuthenticationError     → 401
        ConflictError           → 409
        DatabaseError           → 500 (+ "error" driver detail when present)
        FieldSyncError (base)   → its status_code
        Exception (fallback)    → 500, generic message; traceback logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s %s", request_id_var.get(""), exc.message, exc.fields)
        return _envelope(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Malformed request body: %s", request_id_var.get(""), exc.errors())
        return _envelope(400, "El cuerpo de la petición no es válido.")

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _envelope(401, exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _envelope(409, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Detail: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.detail,
            exc.context,
        )
        return _envelope(500, exc.message, error=exc.detail)

    @app.exception_handler(FieldSyncError)
    async def handle_fieldsync_error(request: Request, exc: FieldSyncError):
        logger.error("[%s] %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _envelope(500, "Ocurrió un error inesperado en el servidor.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="FieldSync API",
        description=(
            "Relay between the field-inspection mobile app and the report datastore: "
            "inspector login and registration, report synchronization, dashboard listing."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Last added = first to execute: RateLimit → RequestID → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(inspectors.router)
    app.include_router(reports.router)

    return app


app = create_app()


def run() -> None:
    """
    Console entry point (`fieldsync`).

    Exits with status 1 before binding a port when DATABASE_URL is missing.
    """
    setup_logging()
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.critical("%s", e)
        sys.exit(1)

    import uvicorn

    uvicorn.run(
        "fieldsync.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
