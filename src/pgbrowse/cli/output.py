"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

from pgbrowse.formatters import registry

if TYPE_CHECKING:
    from pgbrowse.core.models import QueryResult
    from pgbrowse.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None) -> str:
    """Table on a terminal, CSV when piped, unless --format says otherwise."""
    if format_flag is not None:
        return format_flag
    return OutputFormat.TABLE if detect_tty() else OutputFormat.CSV


def get_formatter(
    format_flag: str | None = None,
    *,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
) -> Formatter:
    return registry.get(
        resolve_format(format_flag),
        compact=compact,
        width=width,
        no_header=no_header,
    )


def write_output(formatter: Formatter, result: QueryResult) -> None:
    for line in formatter.format(result):
        sys.stdout.write(line + "\n")
