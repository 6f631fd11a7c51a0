"""
Tutorials API: FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires settings, the database connector, the middleware
       pipeline, exception handlers and routers into one FastAPI object.
Who:   Called by the lifecycle controller (tutorials_api.server) with an
       already connected connector, by tests with a fake connector, and at
       import time for `uvicorn tutorials_api.main:app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain (outermost first):                         │
    │  Security headers → Request ID → Logging → [Rate limit]      │
    │  → GZip → CORS origin check → CORS headers → Body size cap   │
    │                                                              │
    │  Routes:                                                     │
    │  GET /   GET /health   /api/tutorials[...]                   │
    │                                                              │
    │  Exception Handlers:                                         │
    │  Validation→400  NotFound→404  DB→500  DB down→503           │
    │  Unmatched route→404  Anything else→500                      │
    └──────────────────────────────────────────────────────────────┘

Lifecycle (lifespan):
    Startup:   configure logging, connect the connector if it is not already
               connected, ensure the tutorial indexes
    Shutdown:  runs after uvicorn has stopped accepting connections and
               drained in-flight requests; closes the database connection
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from tutorials_api import __version__
from tutorials_api.config import Settings, settings as default_settings
from tutorials_api.database import MongoConnector
from tutorials_api.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    NotFoundError,
    TutorialsAPIError,
    ValidationError,
)
from tutorials_api.middleware.body_limit import BodySizeLimitMiddleware
from tutorials_api.middleware.cors import CORSOriginCheckMiddleware
from tutorials_api.middleware.logging import RequestLoggingMiddleware
from tutorials_api.middleware.rate_limit import RateLimitMiddleware
from tutorials_api.middleware.request_id import RequestIDMiddleware, request_id_var
from tutorials_api.middleware.security_headers import SECURITY_HEADERS, SecurityHeadersMiddleware
from tutorials_api.models.tutorial import TUTORIAL_COLLECTION
from tutorials_api.responses import error_response
from tutorials_api.routes import health, root, tutorials
from tutorials_api.services.tutorial_service import TutorialService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    uvicorn is started with log_config=None, so its loggers propagate here too.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise: our access log replaces uvicorn's, and pymongo logs
    # every command and pool checkout at DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Configure logging
        2. Connect the database unless the lifecycle controller already did
           (raises DatabaseConnectionError, which aborts uvicorn's startup)
        3. Ensure the tutorial indexes

    Shutdown:
        1. Close the database connection
    """
    app_settings: Settings = app.state.settings
    connector: MongoConnector = app.state.connector

    setup_logging(app_settings.log_level)
    logger.info("Tutorials API %s starting up...", __version__)

    if not connector.is_connected:
        await connector.connect()
    await TutorialService(connector.get_collection(TUTORIAL_COLLECTION)).ensure_indexes()

    logger.info("Server is running on port %d.", app_settings.port)

    yield

    logger.info("Tutorials API shutting down...")
    await connector.close()
    logger.info("Server and DB connection closed.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the standard error body.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400
        NotFoundError                           → 404
        DatabaseError                           → 500 (generic message)
        DatabaseConnectionError                 → 503
        TutorialsAPIError (base)                → 500
        HTTPException (framework)               → its own status; 404 is "Route not found"
        Exception (fallback)                    → 500 "Internal server error"

    CORS (403), body size (413) and rate limit (429) rejections happen in
    middleware before routing and use the same body via error_response().

    Responses never contain stack traces or driver messages; those are
    logged server-side with the request ID.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Body or query failed schema validation (missing title, wrong types, bad JSON)."""
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"].removeprefix("Value error, "),
            }
            for error in exc.errors()
        ]
        message = errors[0]["message"] if len(errors) == 1 else "Request validation failed"
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return error_response(400, "validation_error", message, details={"errors": errors})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseConnectionError)
    async def handle_database_unavailable(request: Request, exc: DatabaseConnectionError):
        logger.error(
            "[%s] Database unavailable: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(503, "service_unavailable", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(TutorialsAPIError)
    async def handle_application_error(request: Request, exc: TutorialsAPIError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, "server_error", "Internal server error")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Framework-level HTTP errors: unmatched routes, wrong methods."""
        if exc.status_code == 404:
            return error_response(404, "not_found", "Route not found", headers=exc.headers)
        return error_response(exc.status_code, "http_error", str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors.

        The stack trace is logged server-side only; the client always gets the
        same generic body. This response is sent by Starlette's outermost
        error middleware and bypasses the middleware chain, so it carries the
        security headers and request ID itself.
        """
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error on %s %s: %s",
            rid,
            request.method,
            request.url.path,
            str(exc),
            exc_info=exc,
        )
        headers = dict(SECURITY_HEADERS)
        if rid:
            headers["X-Request-ID"] = rid
        return error_response(
            500, "internal_server_error", "Internal server error", headers=headers
        )


# ══════════════════════════════════════════════════════════════════════════
# Middleware
# ══════════════════════════════════════════════════════════════════════════

def register_middleware(app: FastAPI, app_settings: Settings) -> None:
    """
    Install the middleware pipeline.

    Starlette executes middleware in REVERSE order of addition, so this adds
    the innermost layer (body size cap) first and security headers last.
    """
    origins = app_settings.cors_origins_list

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=app_settings.max_body_size)

    # Preflight answers and Access-Control-* headers for allowed origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(CORSOriginCheckMiddleware, allow_origins=origins)

    app.add_middleware(GZipMiddleware, minimum_size=500)

    if app_settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=app_settings.rate_limit_requests,
            window_seconds=app_settings.rate_limit_window,
        )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    connector: Optional[MongoConnector] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Configuration; defaults to the environment-loaded settings.
        connector:    Database connector; built from the settings (unconnected)
                      when omitted. The lifespan connects it if needed.

    Returns:
        A FastAPI instance with `app.state.settings` and `app.state.connector` set.
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Tutorials API",
        description="CRUD REST API for tutorials stored in MongoDB.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.connector = connector or MongoConnector.from_settings(app_settings)

    register_middleware(app, app_settings)
    register_exception_handlers(app)

    app.include_router(root.router)
    app.include_router(health.router)
    app.include_router(tutorials.router)

    return app


# `uvicorn tutorials_api.main:app` imports this; creating it opens no connection
app = create_app()
