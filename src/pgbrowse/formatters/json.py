"""JSON formatter for QueryResult output."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pgbrowse.core.models import to_jsonable
from pgbrowse.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pgbrowse.core.models import QueryResult


@registry.register("json")
class JSONFormatter:
    """A JSON array of row objects keyed by column name."""

    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        names = result.column_names
        rows = [
            {name: to_jsonable(val) for name, val in zip(names, row, strict=True)}
            for row in result.rows
        ]
        yield json.dumps(rows, indent=None if self.compact else 2)
