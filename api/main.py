"""
api/main.py -- FastAPI application factory for the credential service.

Run with:  uvicorn asgi:app --reload
           python main.py --port 3000

create_app(settings) builds a fully wired application from an explicit
Settings object. Nothing here reads the environment; asgi.py and main.py
resolve Settings and pass it in, and tests pass their own.

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- one access log line per request

Lifespan opens the CredentialStore on startup (unless one was injected) and
disposes it on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.service import CredentialService
from auth.store import CredentialStore
from core.config import Settings

API_VERSION = "1.0.0"

logger = logging.getLogger("credservice.api")


def _configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app(settings: Settings, store: CredentialStore | None = None) -> FastAPI:
    """Build the ASGI application.

    Args:
        settings: Resolved configuration. Supplies the database URL, bcrypt
                  cost, CORS/host allow-lists, and optional static directory.
        store:    Pre-built store to use instead of opening settings.database_url.
                  The caller keeps ownership; it is not closed on shutdown.
    """
    _configure_logging(settings)

    # ---------------------------------------------------------------------------
    # Lifespan
    # ---------------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Credential service starting up")
        owned = store is None
        app.state.store = CredentialStore(settings.database_url) if owned else store
        app.state.credential_service = CredentialService(app.state.store, hash_rounds=settings.hash_rounds)
        logger.info("Credential store ready (bcrypt cost %d)", settings.hash_rounds)

        yield

        if owned:
            app.state.store.close()
        logger.info("Credential service shutdown complete")

    app = FastAPI(
        title="Credential Service",
        description="Email/password authentication issuing backend and frontend tokens.",
        version=API_VERSION,
        lifespan=lifespan,
    )

    # ---------------------------------------------------------------------------
    # Middleware stack
    # ---------------------------------------------------------------------------

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    # ---------------------------------------------------------------------------
    # Exception handlers
    # ---------------------------------------------------------------------------

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render framework errors (unknown path, wrong method) in the {code, message} shape.

        exc.headers carries Allow on 405 responses and must be passed through.
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(code=f"http_{exc.status_code}", message=str(exc.detail)).model_dump(),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors. The traceback goes to the log only."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(code="internal_error", message="An unexpected error occurred.").model_dump(),
        )

    # ---------------------------------------------------------------------------
    # Routes
    # ---------------------------------------------------------------------------

    app.include_router(auth_router, tags=["Auth"])

    @app.get("/health", tags=["Health"])
    async def health(request: Request) -> HealthResponse:
        """Return liveness, version, and database reachability."""
        database = "ok"
        try:
            await run_in_threadpool(request.app.state.store.ping)
        except SQLAlchemyError:
            logger.warning("Health check: database ping failed", exc_info=True)
            database = "error"
        return HealthResponse(version=API_VERSION, components={"app": "ok", "database": database})

    # Mounted last so API routes always win over files of the same name.
    if settings.static_dir:
        static_path = Path(settings.static_dir)
        if static_path.is_dir():
            app.mount("/", StaticFiles(directory=static_path, html=True), name="static")
            logger.info("Serving static files from %s", static_path)
        else:
            logger.warning("STATIC_DIR %s is not a directory; static files disabled", static_path)

    return app
