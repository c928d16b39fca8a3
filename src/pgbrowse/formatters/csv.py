"""CSV formatter for QueryResult output (RFC 4180 compliant)."""

from __future__ import annotations

import csv
import json
from io import StringIO
from typing import TYPE_CHECKING, Any

from pgbrowse.core.models import to_jsonable
from pgbrowse.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from pgbrowse.core.models import QueryResult


def _field(value: Any) -> str:
    # NULL becomes an empty field; arrays and json documents stay JSON.
    if value is None:
        return ""
    plain = to_jsonable(value)
    if isinstance(plain, (dict, list)):
        return json.dumps(plain)
    if isinstance(plain, bool):
        return "true" if plain else "false"
    return str(plain)


@registry.register("csv")
class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult) -> Iterator[str]:
        buf = StringIO()
        writer = csv.writer(buf)

        def line(values: Sequence[str]) -> str:
            buf.seek(0)
            buf.truncate()
            writer.writerow(values)
            return buf.getvalue().rstrip("\r\n")

        if not self.no_header:
            yield line(result.column_names)
        for row in result.rows:
            yield line([_field(v) for v in row])
