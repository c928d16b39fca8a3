"""Standard exit codes for the pgbrowse CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for pgbrowse commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    NOT_FOUND = 4
    NETWORK_ERROR = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
