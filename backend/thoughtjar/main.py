"""
ThoughtJar Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires lifespan, middleware, exception handlers and
       routers; the module-level `app` is what uvicorn serves
       (uvicorn thoughtjar.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Access log → GZip → CORS      │
    │                                                          │
    │  Routes:                                                 │
    │    /api/thoughts  GET POST PUT DELETE   ┐ bearer token   │
    │    /api/folders   GET POST PUT DELETE   ┘ gate           │
    │    /health        GET                     public         │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation→400 │ Auth→401 │ NotFound→404 │ DB→500     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, config check (non-fatal), log which key source the
              identity verifier uses
    Shutdown: close the verifier, dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from thoughtjar import __version__
from thoughtjar.config import settings
from thoughtjar.database import dispose_engine
from thoughtjar.exceptions import (
    AuthenticationError,
    DatabaseError,
    NotFoundError,
    ThoughtJarError,
    ValidationError,
)
from thoughtjar.middleware.auth import PROTECTED_PREFIX, authenticate, resolve_identity_verifier
from thoughtjar.middleware.logging import RequestLoggingMiddleware
from thoughtjar.middleware.request_id import RequestIDMiddleware, request_id_var
from thoughtjar.routes import folders, health, thoughts
from thoughtjar.services.identity_service import identity_verifier

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (the container runtime collects it).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Replaced by thoughtjar.access, or too chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ThoughtJar Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health reports the problem, resource routes answer 401
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if identity_verifier.jwks_url:
        logger.info("Verifying bearer tokens against %s", identity_verifier.jwks_url)
    elif identity_verifier.jwt_secret:
        logger.info("Verifying bearer tokens with a shared secret (%s)", ",".join(identity_verifier.algorithms))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ThoughtJar Backend shutting down...")
    await identity_verifier.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _unauthorized_response(exc: AuthenticationError) -> JSONResponse:
    rid = request_id_var.get("")
    logger.info("[%s] Unauthorized: %s", rid, exc.context.get("reason", "-"))
    return JSONResponse(
        status_code=401,
        content={
            "error": "unauthorized",
            "message": exc.message,
            "request_id": rid,
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and the shared error body:

        {"error": ..., "message": ..., "details": ..., "request_id": ...}

    ValidationError / RequestValidationError → 400
    AuthenticationError                      → 401 (fixed message)
    NotFoundError                            → 404
    DatabaseError, ThoughtJarError           → 500 (generic message)
    Exception                                → 500 (traceback logged)

    Context dicts are logged, never returned, except a ValidationError's
    field name.
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
        """
        Malformed JSON or wrongly typed fields; FastAPI would answer 422.

        FastAPI decodes the body before resolving router dependencies, so
        on gated paths the credential is checked here first: an
        unauthenticated caller gets 401 whatever the body looks like.
        """
        if request.url.path.startswith(PROTECTED_PREFIX):
            try:
                await authenticate(request, resolve_identity_verifier(request))
            except AuthenticationError as auth_exc:
                return _unauthorized_response(auth_exc)

        rid = request_id_var.get("")
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Request body rejected: %s", rid, errors)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Request body is invalid",
                "details": {"errors": errors},
                "request_id": rid,
            },
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _unauthorized_response(exc)

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
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(ThoughtJarError)
    async def handle_application_error(request: Request, exc: ThoughtJarError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
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
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="ThoughtJar API",
        description=(
            "Per-user thoughts and folders behind bearer-token authentication. "
            "Every record is visible only to the identity that created it."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(thoughts.router)
    app.include_router(folders.router)
    app.include_router(health.router)

    return app


app = create_app()
