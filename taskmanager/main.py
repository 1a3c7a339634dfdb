"""Composition root: builds the app from settings and runs it under uvicorn."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__, errors
from .config import Settings, get_settings
from .database import Database
from .logging_setup import setup_logging
from .middleware import LoggingMiddleware, RecoveryMiddleware
from .routes import tasks
from .routes.auth import router as auth_router
from .tokens import TokenManager

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def _app_error_handler(request: Request, exc: errors.AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed method=%s path=%s status=%s",
            request.method, request.url.path, exc.status_code, exc_info=exc,
        )
        # never leak internals
        return _error_response(exc.status_code, type(exc).default_message)
    return _error_response(exc.status_code, exc.message, exc.headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = first.get("msg", "invalid request")
    return _error_response(400, f"{loc}: {msg}" if loc else msg)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings.database_url)
    token_manager = TokenManager(
        settings.JWT_SECRET,
        access_ttl=settings.JWT_ACCESS_TTL,
        refresh_ttl=settings.JWT_REFRESH_TTL,
        algorithm=settings.JWT_ALGORITHM,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Auto-create tables for all models
        database.create_all()
        logger.info("service ready version=%s", __version__)
        yield
        database.dispose()

    app = FastAPI(title="taskmanager", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.token_manager = token_manager

    # Last added runs first: Recovery -> Logging -> routes
    app.add_middleware(LoggingMiddleware, trust_forwarded_for=settings.SERVER_TRUST_PROXY_HEADERS)
    app.add_middleware(RecoveryMiddleware)

    app.add_exception_handler(errors.AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(tasks.router)
    return app


def run() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = create_app(settings)

    config = uvicorn.Config(
        app,
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        # in-flight requests get this long after SIGTERM before being cancelled
        timeout_graceful_shutdown=max(int(settings.SERVER_SHUTDOWN_TIMEOUT.total_seconds()), 1),
        timeout_keep_alive=max(int(settings.SERVER_READ_TIMEOUT.total_seconds()), 1),
        proxy_headers=settings.SERVER_TRUST_PROXY_HEADERS,
        log_config=None,
    )
    logger.info("starting server host=%s port=%s", settings.SERVER_HOST, settings.SERVER_PORT)
    uvicorn.Server(config).run()


if __name__ == "__main__":
    run()
