"""Configuration management CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from pgbrowse.cli.commands._shared import get_connection_config, get_settings
from pgbrowse.core.config import DEFAULT_CONFIG_PATH
from pgbrowse.core.exceptions import PgBrowseError

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration management commands")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _mask(value: str | None) -> str:
    if not value:
        return "not set"
    return "***"


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved settings with source attribution."""
    settings = get_settings(ctx)
    sources = settings.sources

    typer.echo("Server Settings (resolved):")
    server_fields = [
        ("environment", settings.environment),
        ("bind_host", settings.bind_host),
        ("bind_port", str(settings.bind_port)),
        ("api_prefix", settings.api_prefix),
        ("cors_origins", ", ".join(settings.cors_origins) or "none"),
        ("statement_timeout", f"{settings.statement_timeout}s"),
        ("sslmode", settings.effective_sslmode),
        ("json_logs", str(settings.json_logs).lower()),
        ("sentry_dsn", _mask(settings.sentry_dsn)),
    ]
    for field_name, value in server_fields:
        typer.echo(f"  {field_name}: {value} ({sources.get(field_name, 'default')})")

    typer.echo("")
    typer.echo("Pool:")
    for field_name, value in settings.pool.model_dump().items():
        source = sources.get(f"pool.{field_name}", "default")
        typer.echo(f"  {field_name}: {value} ({source})")

    typer.echo("")
    typer.echo("Target Database:")
    try:
        config = get_connection_config(ctx, settings)
    except PgBrowseError as e:
        typer.echo(f"  not configured ({e.message})")
    else:
        for field_name, value in config.public_fields().items():
            typer.echo(f"  {field_name}: {value}")
        typer.echo(f"  password: {_mask(config.password)}")

    typer.echo("")
    config_path: Path | None = ctx.ensure_object(dict).get("config_file")
    typer.echo(f"Config File: {config_path or DEFAULT_CONFIG_PATH}")
