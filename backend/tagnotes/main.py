"""
TagNotes Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app(settings) returns a configured FastAPI
       instance; the module-level `app` is what uvicorn imports
       (uvicorn tagnotes.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:      /api/notes...   /health   / (static)  │
    │                                                     │
    │  Exception Handlers:                                │
    │    ValidationError→400  NotFoundError→404           │
    │    DatabaseError→500    Exception→500               │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Build the engine, StorageService and NotesService (once per process)
    3. Create the schema if CREATE_SCHEMA_ON_STARTUP is set
    4. Publish storage and service on app.state for the route dependencies

    Shutdown:
    1. Dispose the engine (closes every pooled connection)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tagnotes import __version__
from tagnotes.config import Settings, settings as default_settings
from tagnotes.database import build_engine
from tagnotes.exceptions import DatabaseError, NotFoundError, ValidationError
from tagnotes.logging_config import setup_logging
from tagnotes.middleware.logging import RequestLoggingMiddleware
from tagnotes.middleware.request_id import RequestIDMiddleware, request_id_var
from tagnotes.routes import health, notes
from tagnotes.services.notes_service import NotesService
from tagnotes.services.storage_service import StorageService

logger = logging.getLogger(__name__)

PACKAGE_STATIC_DIR = Path(__file__).parent / "static"


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the process-wide storage/service pair on startup, tear it down on
    shutdown. Routes reach them through `app.state`.
    """
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("TagNotes Backend %s starting up...", __version__)

    storage = StorageService(build_engine(config))
    if config.create_schema_on_startup:
        await storage.ensure_schema()

    app.state.storage = storage
    app.state.notes_service = NotesService(storage)

    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

    try:
        yield
    finally:
        # ── Shutdown ──────────────────────────────────────────────────────
        logger.info("TagNotes Backend shutting down...")
        await storage.close()
        logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the ErrorResponse body.

        ValidationError         → 400 (message names the broken rule)
        RequestValidationError  → 400 (body not JSON, non-integer id)
        NotFoundError           → 404
        DatabaseError           → 500 (generic message; context only logged)
        Exception               → 500 (catch-all; stack trace only logged)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Malformed request: %s", rid, errors)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "The request could not be parsed",
                "details": {"errors": errors},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        # Context (operation, driver error type) stays server-side
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to run with; defaults to the environment-loaded
                  `tagnotes.config.settings`. Tests pass their own.
    """
    config = settings or default_settings

    app = FastAPI(
        title="TagNotes API",
        description="Create, read, update and delete notes with optional tag labels.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(health.router)

    # Browser client; mounted last so it only sees paths no route matched
    static_dir = Path(config.static_dir) if config.static_dir else PACKAGE_STATIC_DIR
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.warning("Static directory %s not found; browser client disabled", static_dir)

    return app


app = create_app()
