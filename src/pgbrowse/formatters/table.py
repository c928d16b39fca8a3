"""Rich table formatter for QueryResult output."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from pgbrowse.core.models import to_jsonable
from pgbrowse.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pgbrowse.core.models import QueryResult

_NO_RESULTS = "No results"

_NUMERIC_TYPES = frozenset({"int2", "int4", "int8", "float4", "float8", "numeric", "money"})


def _cell(value: Any, width: int) -> Text:
    if value is None:
        return Text("NULL", style="dim")
    text = str(to_jsonable(value))
    if len(text) > width:
        text = text[: width - 1] + "…"
    return Text(text)


@registry.register("table")
class TableFormatter:
    """Boxed table for terminals; cells are cut to ``width`` characters."""

    def __init__(self, width: int = 40) -> None:
        self.width = width

    def format(self, result: QueryResult) -> Iterator[str]:
        if not result.rows:
            yield _NO_RESULTS
            return

        table = Table(show_edge=True, pad_edge=True)
        for col in result.columns:
            justify = "right" if col.type_name in _NUMERIC_TYPES else "left"
            table.add_column(col.name, no_wrap=True, justify=justify)

        for row in result.rows:
            table.add_row(*(_cell(v, self.width) for v in row))

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        Console(file=buf, force_terminal=True, width=term_width).print(table)
        yield buf.getvalue().rstrip("\n")
