"""
Nexus Forum Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn nexus_forum.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:  /health   /api/register   /api/login      │
    │           /api/categories   /api/topics[...]        │
    │           /api/posts[...]   /api/stats              │
    │                                                     │
    │  Exception Handlers:                                │
    │    Validation→400 │ Auth→401 │ NotFound→404 │ →500  │
    │                                                     │
    │  app.state.store: ForumStore | None (None = SQL)    │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (insecure defaults in production are logged)
    3. Create tables and seed categories + admin (failures are logged; the
       server still starts and reports store errors per request)

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from nexus_forum import __version__
from nexus_forum.config import settings
from nexus_forum.database import create_schema, dispose_engine, session_scope
from nexus_forum.exceptions import (
    AuthError,
    DatabaseError,
    ForumError,
    NotFoundError,
    ValidationError,
)
from nexus_forum.middleware.logging import RequestLoggingMiddleware
from nexus_forum.middleware.request_id import RequestIDMiddleware, request_id_var
from nexus_forum.routes import auth, categories, health, posts, stats, topics
from nexus_forum.services.auth_service import auth_service
from nexus_forum.services.memory_store import MemoryForumStore
from nexus_forum.services.sql_store import SQLForumStore
from nexus_forum.services.store_base import ForumStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every operation at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Store Initialization
# ══════════════════════════════════════════════════════════════════════════

async def initialize_store(store: Optional[ForumStore]) -> None:
    """
    Create the schema (SQL backend) and seed categories and the admin user.

    Idempotent. Errors are logged and swallowed so the process can still
    start against an unreachable database; requests then fail one by one.
    """
    try:
        admin_hash = await auth_service.hash_password(settings.admin_password)
        if store is None:
            await create_schema()
            async with session_scope() as session:
                await SQLForumStore(session).initialize(admin_hash)
        else:
            await store.initialize(admin_hash)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Database initialization error: %s", str(e), exc_info=True)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Nexus Forum starting up (store backend: %s)...", settings.store_backend)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Logged, not raised
        logger.error("Configuration error: %s", str(e))

    await initialize_store(app.state.store)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Nexus Forum shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _public_details(exc: ForumError) -> Optional[Dict[str, Any]]:
    """Context safe to return: raw store errors only when details are enabled."""
    details = dict(exc.context)
    if not settings.expose_error_details:
        details.pop("original_error", None)
    return details or None


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response formats.

    Handler hierarchy:
        ValidationError / ConflictError → 400 Bad Request
        RequestValidationError          → 400 Bad Request (malformed body/query)
        AuthError                       → 401 Unauthorized
        NotFoundError                   → 404 Not Found
        DatabaseError                   → 500 Internal Server Error
        ForumError (base)               → 500 Internal Server Error
        Exception (fallback)            → 500 Internal Server Error
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
                "details": _public_details(exc),
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        fields = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Request is missing required fields or has invalid values",
                "details": {"fields": fields},
                "request_id": rid,
            },
        )

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": rid,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
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
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "details": _public_details(exc),
                "request_id": rid,
            },
        )

    @app.exception_handler(ForumError)
    async def handle_forum_error(request: Request, exc: ForumError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s", rid, exc.message)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        content = {
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": rid,
        }
        if settings.expose_error_details:
            content["details"] = {"original_error": str(exc)}
        return JSONResponse(status_code=500, content=content)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(store: Optional[ForumStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: ForumStore shared by every request. When omitted, the
               STORE_BACKEND setting decides: "memory" builds a fresh
               MemoryForumStore, "sql" leaves it None so each request gets
               a SQLForumStore on its own session.
    """
    app = FastAPI(
        title="Nexus Forum API",
        description="Discussion forum backend: categories, topics, posts and likes.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if store is None and settings.store_backend == "memory":
        store = MemoryForumStore()
    app.state.store = store

    # Middleware executes in REVERSE order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(categories.router)
    app.include_router(topics.router)
    app.include_router(posts.router)
    app.include_router(stats.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured host/port."""
    uvicorn.run(
        "nexus_forum.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
