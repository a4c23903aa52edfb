"""
Notes API - FastAPI Application Factory
========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(store) wires middleware, exception handlers and routers
       around a NoteStore. The CLI builds the store itself and passes it in;
       `uvicorn notesapi.main:app` leaves it to the lifespan, which
       initializes one from settings.database_url.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                     FastAPI App                      │
    │                                                      │
    │  Middleware:      Request ID → Access Log            │
    │                                                      │
    │  Routes:          /api/v1/notes...   /health         │
    │                                                      │
    │  Exception Handlers:                                 │
    │    ValidationError→400  NotFound→404  Database→500   │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging configured; store initialized if none was passed
    Shutdown:  store closed if the lifespan created it
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notesapi import __version__
from notesapi.config import settings
from notesapi.exceptions import (
    DatabaseError,
    NotesAPIError,
    NotFoundError,
    ValidationError,
)
from notesapi.middleware.logging import RequestLoggingMiddleware
from notesapi.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDLogFilter,
    RequestIDMiddleware,
    get_request_id,
)
from notesapi.routes import health, notes
from notesapi.services.note_store import NoteStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s
    Called once by the CLI, or by the lifespan when served by uvicorn directly.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Access lines come from RequestLoggingMiddleware instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Create the store on startup when none was injected; close it on shutdown.

    A store passed to create_app() belongs to the caller, who closes it.
    """
    owns_store = getattr(app.state, "store", None) is None
    if owns_store:
        setup_logging()
        app.state.store = await NoteStore.initialize(settings.database_url)

    logger.info("Notes API %s ready", __version__)

    yield

    logger.info("Notes API shutting down...")
    if owns_store:
        await app.state.store.close()
        app.state.store = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the JSON error envelope.

    Handler hierarchy:
        ValidationError          → 400 Bad Request
        RequestValidationError   → 400 Bad Request
        NotFoundError            → 404 Not Found
        DatabaseError            → 500 Internal Server Error (generic message)
        NotesAPIError (base)     → 500 Internal Server Error
        Exception (fallback)     → 500 Internal Server Error

    Responses never contain driver messages, SQL or stack traces; those are
    logged server-side with the request id.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input."""
        rid = get_request_id(request)
        logger.warning("Validation error: %s", exc.message)
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
        """FastAPI-level parameter validation; reported as 400 like our own."""
        rid = get_request_id(request)
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        logger.warning("Request validation error on %s", fields)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Invalid request",
                "details": {"fields": fields},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = get_request_id(request)
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Database error: generic message to the client, details in the log."""
        rid = get_request_id(request)
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "Internal server error",
                "request_id": rid,
            },
        )

    @app.exception_handler(NotesAPIError)
    async def handle_app_error(request: Request, exc: NotesAPIError):
        rid = get_request_id(request)
        logger.error("Application error: %s | Context: %s", exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "Internal server error",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors; stack trace goes to the log only.

        Starlette runs this handler outside the middleware stack, so the
        request id comes from request.state and the header is set here.
        """
        rid = get_request_id(request)
        logger.error(
            "Unexpected error in request %s: %s",
            rid,
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Internal server error",
                "request_id": rid,
            },
            headers={REQUEST_ID_HEADER: rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(store: Optional[NoteStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: An initialized NoteStore shared by every request. When None,
            the lifespan initializes one from settings on startup.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Notes API",
        description="CRUD and search for notes (id, title, content) backed by a SQL table.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.store = store

    # Last added runs first: RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# `uvicorn notesapi.main:app` entry point; the store is created in lifespan
app = create_app()
