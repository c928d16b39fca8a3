"""FastAPI application factory for the pgbrowse API server."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pgbrowse.__about__ import __version__
from pgbrowse.core.config import load_config, resolve_settings
from pgbrowse.core.exceptions import PgBrowseError
from pgbrowse.core.logging import get_logger
from pgbrowse.core.registry import ConnectionRegistry
from pgbrowse.server.routes import error_response, router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from pgbrowse.core.config import ResolvedSettings


def _describe_validation_error(exc: RequestValidationError) -> str:
    fields: list[str] = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        name = ".".join(loc) or "request"
        if name not in fields:
            fields.append(name)
    return f"Missing or invalid parameters: {', '.join(fields)}"


def create_app(
    settings: ResolvedSettings | None = None,
    registry: ConnectionRegistry | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Resolved settings; read from the config file and
            environment when omitted.
        registry: Connection registry; a fresh one is built when omitted.
    """
    if settings is None:
        settings = resolve_settings(load_config())
    if registry is None:
        registry = ConnectionRegistry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log = get_logger("server")
        log.info(
            "pgbrowse API server started",
            environment=settings.environment,
            api_prefix=settings.api_prefix,
        )
        yield
        log.info("shutting down, closing connections", connections=len(registry))
        registry.close_all_connections()

    app = FastAPI(
        title="pgbrowse API",
        description="Browse and edit PostgreSQL tables",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_validation_error(exc)
        get_logger("server").warning(
            "request validation error",
            path=request.url.path,
            method=request.method,
            detail=message,
        )
        return error_response(400, message)

    @app.exception_handler(PgBrowseError)
    async def pgbrowse_error_handler(
        request: Request, exc: PgBrowseError
    ) -> JSONResponse:
        get_logger("server").error(
            "unhandled database error",
            path=request.url.path,
            method=request.method,
            error=exc.message,
        )
        return error_response(500, "Internal server error")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "connections": len(registry)}

    app.include_router(router, prefix=settings.api_prefix)
    return app
