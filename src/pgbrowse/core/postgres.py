"""Schema introspection, paginated reads and cell updates.

Framework-agnostic business logic. The HTTP routes in server/routes.py and
the CLI commands in cli/main.py resolve a PgClient from the registry and call
into these functions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from psycopg import sql

from pgbrowse.core.exceptions import PgBrowseError
from pgbrowse.core.filters import compile_filters
from pgbrowse.core.models import ColumnInfo, TableData, TableInfo

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pgbrowse.core.client import PgClient
    from pgbrowse.core.models import FilterCondition

DEFAULT_SCHEMA = "public"
DEFAULT_LIMIT = 100

_TABLES_SQL = """
SELECT
    t.table_name,
    t.table_schema AS schema_name,
    COUNT(c.column_name) AS column_count
FROM information_schema.tables t
LEFT JOIN information_schema.columns c
    ON t.table_name = c.table_name
    AND t.table_schema = c.table_schema
WHERE t.table_schema NOT IN ('information_schema', 'pg_catalog')
    AND t.table_type = 'BASE TABLE'
GROUP BY t.table_name, t.table_schema
ORDER BY t.table_schema, t.table_name
"""

_COLUMNS_SQL = """
SELECT
    column_name,
    data_type,
    is_nullable,
    column_default,
    character_maximum_length
FROM information_schema.columns
WHERE table_name = %(table)s AND table_schema = %(schema)s
ORDER BY ordinal_position
"""


def _qualified(schema_name: str, table_name: str) -> sql.Identifier:
    return sql.Identifier(schema_name, table_name)


# ---------------------------------------------------------------------------
# Schema introspection
# ---------------------------------------------------------------------------


def list_tables(client: PgClient) -> list[TableInfo]:
    """Base tables outside the system schemas, ordered by (schema, name)."""
    result = client.execute_query(_TABLES_SQL)
    return [
        TableInfo(table_name=name, schema_name=schema, column_count=int(count))
        for name, schema, count in result.rows
    ]


def list_columns(
    client: PgClient, table_name: str, schema_name: str = DEFAULT_SCHEMA
) -> list[ColumnInfo]:
    """Column metadata for one table, in physical column order."""
    result = client.execute_query(
        _COLUMNS_SQL, {"table": table_name, "schema": schema_name}
    )
    return [ColumnInfo.model_validate(row) for row in result.as_dicts()]


# ---------------------------------------------------------------------------
# Paginated data reader
# ---------------------------------------------------------------------------


def _count(
    client: PgClient,
    table: sql.Identifier,
    where: sql.Composable | None = None,
    params: dict[str, Any] | None = None,
) -> int:
    query = sql.SQL("SELECT COUNT(*) AS total FROM {}").format(table)
    if where is not None:
        query = sql.SQL("{} {}").format(query, where)
    result = client.execute_query(query, params)
    return int(result.rows[0][0])


def get_table_data(
    client: PgClient,
    table_name: str,
    schema_name: str = DEFAULT_SCHEMA,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    filters: Sequence[FilterCondition] = (),
) -> TableData:
    """Fetch one page of rows with total and filtered counts.

    The three queries run independently without a shared snapshot, so under
    concurrent writes the counts and the page may disagree.
    """
    log = structlog.get_logger()
    columns = list_columns(client, table_name, schema_name)
    compiled = compile_filters(filters, columns)
    table = _qualified(schema_name, table_name)

    total_count = _count(client, table)

    filtered_count: int | None = None
    if not compiled.is_empty:
        filtered_count = _count(
            client, table, compiled.where_clause(), compiled.params
        )

    page_query = sql.SQL("SELECT * FROM {} {} LIMIT {} OFFSET {}").format(
        table,
        compiled.where_clause(),
        sql.Placeholder("limit"),
        sql.Placeholder("offset"),
    )
    page = client.execute_query(
        page_query, {**compiled.params, "limit": limit, "offset": offset}
    )

    log.debug(
        "table page fetched",
        table=f"{schema_name}.{table_name}",
        limit=limit,
        offset=offset,
        rows=page.row_count,
        total=total_count,
        filtered=filtered_count,
    )
    return TableData(
        columns=columns,
        rows=page.as_dicts(),
        total_count=total_count,
        filtered_count=filtered_count,
    )


# ---------------------------------------------------------------------------
# Cell updater
# ---------------------------------------------------------------------------


def update_cell(
    client: PgClient,
    table_name: str,
    schema_name: str,
    primary_key_column: str,
    primary_key_value: Any,
    column_name: str,
    new_value: Any,
) -> bool:
    """Set one column on the row(s) matching the primary key value.

    Returns False on any database error. The number of affected rows is not
    checked: matching zero rows still counts as success.
    """
    log = structlog.get_logger()
    query = sql.SQL("UPDATE {} SET {} = {} WHERE {} = {}").format(
        _qualified(schema_name, table_name),
        sql.Identifier(column_name),
        sql.Placeholder("new_value"),
        sql.Identifier(primary_key_column),
        sql.Placeholder("pk_value"),
    )
    try:
        result = client.execute_query(
            query, {"new_value": new_value, "pk_value": primary_key_value}
        )
    except PgBrowseError as e:
        log.error(
            "update failed",
            table=f"{schema_name}.{table_name}",
            column=column_name,
            error=e.message,
        )
        return False

    log.info(
        "cell updated",
        table=f"{schema_name}.{table_name}",
        column=column_name,
        rows=result.row_count,
    )
    return True
