"""Exception hierarchy for pgbrowse.

All exceptions carry an exit_code for CLI return value mapping. The HTTP
layer maps them onto status codes in server/app.py.
"""

from pgbrowse.core.exit_codes import ExitCode


class PgBrowseError(Exception):
    """Base exception for all pgbrowse errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NetworkError(PgBrowseError):
    """Connection failures, unreachable host, closed pool."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(NetworkError):
    """Statement timeout, pool acquisition timeout."""

    exit_code: int = ExitCode.TIMEOUT


class ConnectionNotFoundError(PgBrowseError):
    """Unknown connection id with no config to rebuild it from."""

    exit_code: int = ExitCode.NOT_FOUND

    def __init__(self, connection_id: str) -> None:
        self.connection_id = connection_id
        super().__init__(
            f"Connection not found and could not be recreated for {connection_id}"
        )


class InputError(PgBrowseError):
    """Malformed filters, missing parameters."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(PgBrowseError):
    """Malformed config file, invalid connection string."""

    exit_code: int = ExitCode.CONFIG_ERROR
