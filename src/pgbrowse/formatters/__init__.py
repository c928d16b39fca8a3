"""Output formatters for the pgbrowse CLI."""

from pgbrowse.formatters.base import Formatter, FormatterRegistry, registry
from pgbrowse.formatters.csv import CSVFormatter
from pgbrowse.formatters.json import JSONFormatter
from pgbrowse.formatters.table import TableFormatter

__all__ = [
    "CSVFormatter",
    "Formatter",
    "FormatterRegistry",
    "JSONFormatter",
    "TableFormatter",
    "registry",
]
