"""Shared CLI plumbing for command modules.

Settings and connection resolution, client lifetime, argument parsing and
output helpers.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from pgbrowse.cli.output import get_formatter, write_output
from pgbrowse.core.config import (
    DEFAULT_PORT,
    ConnectionConfig,
    database_url_from_env,
    load_config,
    parse_database_url,
    resolve_settings,
)
from pgbrowse.core.exceptions import ConfigError, InputError, NetworkError
from pgbrowse.core.models import ColumnMeta, QueryResult
from pgbrowse.core.postgres import DEFAULT_SCHEMA
from pgbrowse.core.registry import ConnectionRegistry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    import typer

    from pgbrowse.core.client import PgClient
    from pgbrowse.core.config import ResolvedSettings

# Registry id used for the single connection a CLI invocation opens.
CLI_CONNECTION_ID = "cli"

_TEXT_OID = 25


def get_settings(ctx: typer.Context, **cli_overrides: Any) -> ResolvedSettings:
    obj = ctx.ensure_object(dict)
    return resolve_settings(load_config(obj.get("config_file")), **cli_overrides)


def get_connection_config(
    ctx: typer.Context, settings: ResolvedSettings
) -> ConnectionConfig:
    """Target database from --dsn, then the connection flags, then DATABASE_URL."""
    obj = ctx.ensure_object(dict)

    dsn = obj.get("dsn")
    if dsn:
        return parse_database_url(dsn)

    host = obj.get("host")
    database = obj.get("database")
    user = obj.get("user")
    if host or database or user:
        if not database or not user:
            raise InputError("--database and --user are required with --host")
        try:
            return ConnectionConfig(
                host=host or "localhost",
                port=obj.get("port") or DEFAULT_PORT,
                database=database,
                username=user,
                password=obj.get("password") or "",
            )
        except ValueError as e:
            raise InputError(f"Invalid connection options: {e}") from e

    config = database_url_from_env(settings.database_url_env)
    if config is None:
        msg = (
            "No connection given. Use --dsn, --host/--database/--user, "
            f"or set {settings.database_url_env}"
        )
        raise ConfigError(msg)
    return config


@contextmanager
def get_client(ctx: typer.Context) -> Iterator[PgClient]:
    """Open a registry-managed client for the duration of one command."""
    settings = get_settings(ctx)
    config = get_connection_config(ctx, settings)
    registry = ConnectionRegistry(settings)
    if not registry.create_connection(CLI_CONNECTION_ID, config):
        msg = f"Could not connect to {config.host}:{config.port}/{config.database}"
        raise NetworkError(msg)
    try:
        yield registry.ensure_connection(CLI_CONNECTION_ID)
    finally:
        registry.close_all_connections()


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    return {
        "format_flag": obj.get("format"),
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def output_result(ctx: typer.Context, result: QueryResult) -> None:
    formatter = get_formatter(**format_options(ctx))
    write_output(formatter, result)


def rows_result(names: Sequence[str], rows: list[tuple[Any, ...]]) -> QueryResult:
    """Wrap computed rows in a QueryResult so the formatters can render them."""
    return QueryResult(
        columns=[
            ColumnMeta(name=name, type_oid=_TEXT_OID, type_name="text")
            for name in names
        ],
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


def parse_table_arg(table_arg: str) -> tuple[str, str]:
    if "." in table_arg:
        schema, table = table_arg.split(".", 1)
        return schema, table
    return DEFAULT_SCHEMA, table_arg


def parse_assignment(raw: str, option: str) -> tuple[str, str]:
    """Split ``COL=VALUE``; the value may itself contain '='."""
    column, sep, value = raw.partition("=")
    if not sep or not column:
        raise InputError(f"Invalid {option} value '{raw}'. Expected COL=VALUE")
    return column, value
