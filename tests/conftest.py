"""Shared test fixtures for pgbrowse."""

from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from pgbrowse.cli.main import app
from pgbrowse.core.config import ConnectionConfig
from pgbrowse.core.exceptions import NetworkError

_ENV_VARS = (
    "DATABASE_URL",
    "SENTRY_DSN",
    "PGBROWSE_ENV",
    "PGBROWSE_HOST",
    "PGBROWSE_PORT",
    "PGBROWSE_API_PREFIX",
    "PGBROWSE_CORS_ORIGINS",
    "PGBROWSE_STATEMENT_TIMEOUT",
    "PGBROWSE_SSLMODE",
    "PGBROWSE_JSON_LOGS",
    "PGBROWSE_POOL_MIN_SIZE",
    "PGBROWSE_POOL_MAX_SIZE",
    "PGBROWSE_POOL_TIMEOUT",
    "PGBROWSE_POOL_MAX_IDLE",
    "PGBROWSE_CONNECT_TIMEOUT",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's environment and config file out of tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "pgbrowse.core.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.toml"
    )


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def connection_config():
    return ConnectionConfig(
        host="db.example.com",
        port=5432,
        database="app",
        username="alice",
        password="s3cret",
    )


@pytest.fixture
def stub_clients(monkeypatch):
    """Replace the registry's PgClient with an in-memory stub.

    Hosts added to ``failing`` refuse to open.
    """
    state = SimpleNamespace(created=[], failing=set())

    class StubClient:
        def __init__(self, config, settings=None, *, name=None):
            self.config = config
            self.settings = settings
            self.name = name
            self.closed = True
            state.created.append(self)

        def open(self):
            if self.config.host in state.failing:
                raise NetworkError(f"Connection refused: {self.config.host}")
            self.closed = False

        def close(self):
            self.closed = True

    monkeypatch.setattr("pgbrowse.core.registry.PgClient", StubClient)
    return state
