"""Table browsing and editing commands: tables, columns, data, update."""

from __future__ import annotations

from typing import Annotated

import typer

from pgbrowse.cli.commands._shared import (
    get_client,
    output_result,
    parse_assignment,
    parse_table_arg,
    rows_result,
)
from pgbrowse.core.exceptions import InputError, PgBrowseError
from pgbrowse.core.models import (
    GLOBAL_SEARCH_PREFIX,
    FilterCondition,
    FilterOperator,
    TableData,
)
from pgbrowse.core.postgres import (
    DEFAULT_LIMIT,
    get_table_data,
    list_columns,
    list_tables,
    update_cell,
)

_OPERATORS = ", ".join(op.value for op in FilterOperator)


def parse_filter_arg(raw: str) -> FilterCondition:
    """Parse ``COL:OP[:VALUE]``; everything after the second colon is the value."""
    parts = raw.split(":", 2)
    if len(parts) < 2 or not parts[0]:
        raise InputError(f"Invalid filter '{raw}'. Expected COL:OP[:VALUE]")
    column, operator = parts[0], parts[1]
    try:
        op = FilterOperator(operator)
    except ValueError:
        msg = f"Unknown filter operator '{operator}'. Valid: {_OPERATORS}"
        raise InputError(msg) from None
    value = parts[2] if len(parts) == 3 else None
    return FilterCondition(column=column, operator=op, value=value)


def page_summary(data: TableData, offset: int) -> str:
    shown = len(data.rows)
    if data.filtered_count is not None:
        matching = f"{data.filtered_count} matching, {data.total_count} total"
    else:
        matching = f"{data.total_count} total"
    if not shown:
        return f"No rows at offset {offset} ({matching})"
    return f"Rows {offset + 1}-{offset + shown} ({matching})"


def tables_command(ctx: typer.Context) -> None:
    """List base tables outside the system schemas."""
    with get_client(ctx) as client:
        tables = list_tables(client)

    rows = [(t.schema_name, t.table_name, t.column_count) for t in tables]
    output_result(ctx, rows_result(["schema", "table", "columns"], rows))


def columns_command(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table name, optionally schema.table")],
) -> None:
    """Show column metadata for a table."""
    schema_name, table_name = parse_table_arg(table)
    with get_client(ctx) as client:
        columns = list_columns(client, table_name, schema_name)

    if not columns:
        raise InputError(f"Table '{schema_name}.{table_name}' not found")

    rows = [
        (
            col.name,
            col.data_type,
            "YES" if col.is_nullable else "NO",
            col.default,
            col.max_length,
        )
        for col in columns
    ]
    names = ["column_name", "data_type", "is_nullable", "default", "max_length"]
    output_result(ctx, rows_result(names, rows))


def data_command(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table name, optionally schema.table")],
    limit: Annotated[
        int, typer.Option("--limit", "-l", min=0, help="Rows per page")
    ] = DEFAULT_LIMIT,
    offset: Annotated[
        int, typer.Option("--offset", "-o", min=0, help="Rows to skip")
    ] = 0,
    filter_args: Annotated[
        list[str] | None,
        typer.Option(
            "--filter",
            help="Filter as COL:OP[:VALUE], repeatable. "
            f"Operators: {_OPERATORS}",
        ),
    ] = None,
    search: Annotated[
        str | None,
        typer.Option("--search", "-s", help="Match text across all searchable columns"),
    ] = None,
) -> None:
    """Show one page of table rows, optionally filtered."""
    schema_name, table_name = parse_table_arg(table)
    filters = [parse_filter_arg(raw) for raw in filter_args or []]
    if search:
        filters.append(
            FilterCondition(
                column=GLOBAL_SEARCH_PREFIX,
                operator=FilterOperator.CONTAINS,
                value=search,
            )
        )

    with get_client(ctx) as client:
        data = get_table_data(
            client,
            table_name,
            schema_name,
            limit=limit,
            offset=offset,
            filters=filters,
        )

    names = [col.name for col in data.columns]
    rows = [tuple(row.get(name) for name in names) for row in data.rows]
    output_result(ctx, rows_result(names, rows))
    typer.echo(page_summary(data, offset), err=True)


def update_command(
    ctx: typer.Context,
    table: Annotated[str, typer.Argument(help="Table name, optionally schema.table")],
    pk: Annotated[
        str, typer.Option("--pk", help="Primary key as COL=VALUE")
    ],
    set_: Annotated[
        str, typer.Option("--set", help="Assignment as COL=VALUE")
    ],
    null: Annotated[
        bool, typer.Option("--null", help="Set the column to NULL, ignoring VALUE")
    ] = False,
) -> None:
    """Update a single cell identified by its primary key."""
    schema_name, table_name = parse_table_arg(table)
    pk_column, pk_value = parse_assignment(pk, "--pk")
    column, value = parse_assignment(set_, "--set")

    with get_client(ctx) as client:
        updated = update_cell(
            client,
            table_name,
            schema_name,
            pk_column,
            pk_value,
            column,
            None if null else value,
        )

    if not updated:
        raise PgBrowseError("Update failed")
    typer.echo("Update successful")
