"""PostgreSQL client for pgbrowse.

Wraps a psycopg v3 connection pool with a liveness check, query execution,
statement timeout, and exception mapping to the PgBrowseError hierarchy.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import psycopg
import psycopg.errors
import sentry_sdk
import structlog
from psycopg import sql
from psycopg_pool import ConnectionPool, PoolClosed, PoolTimeout

from pgbrowse.core.config import ResolvedSettings
from pgbrowse.core.exceptions import NetworkError, PgBrowseError, TimeoutError
from pgbrowse.core.models import ColumnMeta, QueryResult

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pgbrowse.core.config import ConnectionConfig

Query = str | sql.Composable

LIVENESS_QUERY = "SELECT 1"

# Mapping from psycopg type OIDs to human-readable names.
# Covers the most common PostgreSQL types; unknown OIDs fall back to "unknown".
_TYPE_NAMES: dict[int, str] = {
    16: "bool",
    17: "bytea",
    20: "int8",
    21: "int2",
    23: "int4",
    25: "text",
    26: "oid",
    114: "json",
    142: "xml",
    700: "float4",
    701: "float8",
    790: "money",
    1042: "bpchar",
    1043: "varchar",
    1082: "date",
    1083: "time",
    1114: "timestamp",
    1184: "timestamptz",
    1186: "interval",
    1700: "numeric",
    2950: "uuid",
    3802: "jsonb",
}


def connection_kwargs(
    config: ConnectionConfig, settings: ResolvedSettings
) -> dict[str, Any]:
    """Keyword arguments for psycopg.connect() for one target database."""
    timeout_ms = int(settings.statement_timeout * 1000)
    return {
        "host": config.host,
        "port": config.port,
        "dbname": config.database,
        "user": config.username,
        "password": config.password,
        "sslmode": settings.effective_sslmode,
        "connect_timeout": settings.pool.connect_timeout,
        "application_name": "pgbrowse",
        "options": f"-c statement_timeout={timeout_ms}",
        "autocommit": True,
    }


def check_connection(
    config: ConnectionConfig, settings: ResolvedSettings | None = None
) -> None:
    """Open a single non-pooled connection, run the liveness query, close it.

    Raises NetworkError when the server cannot be reached or rejects the
    credentials.
    """
    settings = settings or ResolvedSettings()
    log = structlog.get_logger()
    try:
        with psycopg.connect(**connection_kwargs(config, settings)) as conn:
            conn.execute(LIVENESS_QUERY)
    except psycopg.Error as e:
        log.warning(
            "connection test failed",
            host=config.host,
            port=config.port,
            database=config.database,
            user=config.username,
            error=str(e),
        )
        msg = (
            f"Connection failed to {config.host}:{config.port} "
            f"database '{config.database}': {e}"
        )
        raise NetworkError(msg) from e


class PgClient:
    """PostgreSQL client owning one psycopg connection pool."""

    def __init__(
        self,
        config: ConnectionConfig,
        settings: ResolvedSettings | None = None,
        *,
        name: str | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or ResolvedSettings()
        self.name = name
        pool_settings = self.settings.pool
        self._pool = ConnectionPool(
            kwargs=connection_kwargs(config, self.settings),
            min_size=pool_settings.min_size,
            max_size=pool_settings.max_size,
            timeout=pool_settings.timeout,
            max_idle=pool_settings.max_idle,
            name=name,
            open=False,
        )

    def __enter__(self) -> PgClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._pool.closed

    def open(self) -> None:
        """Start the pool and confirm the database answers.

        On failure the pool is closed again and NetworkError is raised.
        """
        self._pool.open(wait=False)
        try:
            self.ping()
        except PgBrowseError:
            self._pool.close()
            raise

    def ping(self) -> None:
        self.execute_query(LIVENESS_QUERY)

    def execute_query(
        self, query: Query, params: Mapping[str, Any] | None = None
    ) -> QueryResult:
        """Execute SQL on a pooled connection and return a QueryResult."""
        log = structlog.get_logger()
        sql_normalized = ""

        with sentry_sdk.start_span(op="db.query") as span:
            start_time = time.monotonic()
            try:
                with self._pool.connection() as conn, conn.cursor() as cur:
                    sql_normalized = _normalize(query, conn)
                    span.description = sql_normalized[:100]
                    log.debug("executing query", sql=sql_normalized, pool=self.name)
                    cur.execute(query, params)

                    columns: list[ColumnMeta] = []
                    rows: list[tuple[Any, ...]] = []

                    if cur.description:
                        for desc in cur.description:
                            columns.append(
                                ColumnMeta(
                                    name=desc.name,
                                    type_oid=desc.type_code,
                                    type_name=_TYPE_NAMES.get(
                                        desc.type_code, "unknown"
                                    ),
                                )
                            )
                        rows = cur.fetchall()
                        row_count = len(rows)
                    else:
                        row_count = max(cur.rowcount, 0)

                    duration_ms = (time.monotonic() - start_time) * 1000
                    span.set_data("row_count", row_count)
                    span.set_data("duration_ms", duration_ms)
                    log.debug(
                        "query complete",
                        duration_ms=f"{duration_ms:.1f}",
                        row_count=row_count,
                    )

                    return QueryResult(
                        columns=columns,
                        rows=rows,
                        row_count=row_count,
                        status_message=cur.statusmessage or "",
                    )

            except psycopg.errors.QueryCanceled as e:
                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("duration_ms", duration_ms)
                span.set_status("deadline_exceeded")
                log.error(
                    "query timeout",
                    sql=sql_normalized,
                    duration_ms=f"{duration_ms:.1f}",
                )
                msg = f"Query timed out after {self.settings.statement_timeout}s: {e}"
                raise TimeoutError(msg) from e
            except PoolTimeout as e:
                span.set_status("resource_exhausted")
                log.error("connection acquisition timeout", pool=self.name, error=str(e))
                raise TimeoutError(f"No database connection available: {e}") from e
            except PoolClosed as e:
                span.set_status("unavailable")
                log.error("connection pool closed", pool=self.name, error=str(e))
                raise NetworkError(f"Connection closed: {e}") from e
            except psycopg.OperationalError as e:
                span.set_status("unavailable")
                log.error("database error", sql=sql_normalized, error=str(e))
                raise NetworkError(f"Database error: {e}") from e
            except psycopg.Error as e:
                span.set_status("invalid_argument")
                log.error("query error", sql=sql_normalized, error=str(e))
                raise PgBrowseError(f"SQL error: {e}") from e

    def close(self) -> None:
        """Close the pool and every connection it holds."""
        self._pool.close()


def _normalize(query: Query, conn: psycopg.Connection[Any]) -> str:
    text = query if isinstance(query, str) else query.as_string(conn)
    return " ".join(text.split())
