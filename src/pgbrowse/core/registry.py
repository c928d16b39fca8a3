"""Named connection registry.

Maps opaque connection ids to live PgClient pools and the ConnectionConfig
they were built from. Requests arrive on many threads at once, so both maps
sit behind one lock, and each id gets its own re-entrant lock that
serializes create/recover/close for that id without blocking other ids
while a pool is being opened.
"""

from __future__ import annotations

from threading import Lock, RLock
from typing import TYPE_CHECKING
from weakref import WeakValueDictionary

import structlog

from pgbrowse.core.client import PgClient, check_connection
from pgbrowse.core.config import ResolvedSettings, database_url_from_env
from pgbrowse.core.exceptions import (
    ConfigError,
    ConnectionNotFoundError,
    PgBrowseError,
)

if TYPE_CHECKING:
    from pgbrowse.core.config import ConnectionConfig

# Ids containing one of these may be rebuilt from the DATABASE_URL variable.
ENV_ID_MARKERS: tuple[str, ...] = ("env", "auto")


def is_env_connection_id(connection_id: str) -> bool:
    return any(marker in connection_id for marker in ENV_ID_MARKERS)


class ConnectionRegistry:
    """Thread-safe store of pooled connections keyed by connection id."""

    def __init__(self, settings: ResolvedSettings | None = None) -> None:
        self.settings = settings or ResolvedSettings()
        self._clients: dict[str, PgClient] = {}
        self._configs: dict[str, ConnectionConfig] = {}
        self._lock = Lock()
        # Entries drop out once no caller references the lock.
        self._id_locks: WeakValueDictionary[str, RLock] = WeakValueDictionary()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, connection_id: object) -> bool:
        with self._lock:
            return connection_id in self._clients

    def _id_lock(self, connection_id: str) -> RLock:
        with self._lock:
            lock = self._id_locks.get(connection_id)
            if lock is None:
                lock = RLock()
                self._id_locks[connection_id] = lock
            return lock

    def _build_client(self, connection_id: str, config: ConnectionConfig) -> PgClient:
        return PgClient(config, self.settings, name=connection_id)

    def get_config(self, connection_id: str) -> ConnectionConfig | None:
        with self._lock:
            return self._configs.get(connection_id)

    def create_connection(self, connection_id: str, config: ConnectionConfig) -> bool:
        """Open and register a pool under ``connection_id``.

        Any pool already registered under the id is closed first. Returns
        False when the pool cannot be opened or fails the liveness check;
        nothing is registered in that case.
        """
        log = structlog.get_logger()
        with self._id_lock(connection_id):
            with self._lock:
                previous = self._clients.pop(connection_id, None)
            if previous is not None:
                log.info("replacing connection", connection_id=connection_id)
                previous.close()

            try:
                client = self._build_client(connection_id, config)
                client.open()
            except PgBrowseError as e:
                log.error(
                    "database connection failed",
                    connection_id=connection_id,
                    host=config.host,
                    port=config.port,
                    database=config.database,
                    user=config.username,
                    error=e.message,
                )
                return False

            with self._lock:
                self._clients[connection_id] = client
                self._configs[connection_id] = config
            log.info(
                "connection created",
                connection_id=connection_id,
                host=config.host,
                port=config.port,
                database=config.database,
            )
            return True

    def test_connection(self, config: ConnectionConfig) -> bool:
        """Validate credentials on a throwaway connection; registry untouched."""
        try:
            check_connection(config, self.settings)
        except PgBrowseError:
            return False
        return True

    def _recoverable_config(self, connection_id: str) -> ConnectionConfig | None:
        log = structlog.get_logger()
        config = self.get_config(connection_id)
        if config is not None or not is_env_connection_id(connection_id):
            return config
        try:
            config = database_url_from_env(self.settings.database_url_env)
        except ConfigError as e:
            log.error(
                "invalid database url",
                variable=self.settings.database_url_env,
                error=e.message,
            )
            return None
        if config is not None:
            log.info(
                "using database url for connection",
                connection_id=connection_id,
                variable=self.settings.database_url_env,
            )
        return config

    def ensure_connection(self, connection_id: str) -> PgClient:
        """Return the live client for ``connection_id``, rebuilding it if needed.

        Recovery uses the cached config for the id, or for environment-style
        ids the DATABASE_URL variable. Raises ConnectionNotFoundError when
        neither is available or the rebuild fails.
        """
        with self._lock:
            client = self._clients.get(connection_id)
        if client is not None and not client.closed:
            return client

        log = structlog.get_logger()
        with self._id_lock(connection_id):
            with self._lock:
                client = self._clients.get(connection_id)
            if client is not None and not client.closed:
                return client

            config = self._recoverable_config(connection_id)
            if config is not None:
                log.info("recreating connection", connection_id=connection_id)
                if self.create_connection(connection_id, config):
                    with self._lock:
                        client = self._clients.get(connection_id)

            if client is None or client.closed:
                raise ConnectionNotFoundError(connection_id)
            return client

    def close_connection(self, connection_id: str) -> None:
        """Close the pool and forget the config for ``connection_id``. Idempotent."""
        with self._id_lock(connection_id):
            with self._lock:
                client = self._clients.pop(connection_id, None)
                self._configs.pop(connection_id, None)
            if client is not None:
                client.close()
                structlog.get_logger().info(
                    "connection closed", connection_id=connection_id
                )

    def close_all_connections(self) -> None:
        with self._lock:
            connection_ids = list(self._clients)
        for connection_id in connection_ids:
            self.close_connection(connection_id)
