"""API server and connectivity commands."""

from __future__ import annotations

from typing import Annotated

import typer
import uvicorn

from pgbrowse.cli.commands._shared import get_connection_config, get_settings
from pgbrowse.core.exceptions import NetworkError
from pgbrowse.core.registry import ConnectionRegistry
from pgbrowse.server import create_app


def serve_command(
    ctx: typer.Context,
    host: Annotated[
        str | None, typer.Option("--host", help="Interface to bind")
    ] = None,
    port: Annotated[
        int | None, typer.Option("--port", help="Port to listen on")
    ] = None,
    environment: Annotated[
        str | None,
        typer.Option("--env", help="Deployment environment, e.g. production"),
    ] = None,
    sslmode: Annotated[
        str | None, typer.Option("--sslmode", help="sslmode for target databases")
    ] = None,
) -> None:
    """Run the HTTP API server."""
    settings = get_settings(
        ctx, host=host, port=port, environment=environment, sslmode=sslmode
    )
    verbose = ctx.ensure_object(dict).get("verbose", False)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.bind_host,
        port=settings.bind_port,
        log_level="debug" if verbose else "info",
    )


def check_command(ctx: typer.Context) -> None:
    """Check that the target database accepts the given credentials."""
    settings = get_settings(ctx)
    config = get_connection_config(ctx, settings)
    if not ConnectionRegistry(settings).test_connection(config):
        msg = (
            "Connection test failed for "
            f"{config.username}@{config.host}:{config.port}/{config.database}"
        )
        raise NetworkError(msg)
    typer.echo("Connection test successful")
