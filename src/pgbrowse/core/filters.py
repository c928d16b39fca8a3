"""Filter compiler: user filter conditions to a parameterized SQL predicate.

Column names only ever reach SQL through ``sql.Identifier`` and values only
through named placeholders, so no user-supplied text is spliced into the
statement.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from psycopg import sql

from pgbrowse.core.models import FilterOperator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pgbrowse.core.models import ColumnInfo, FilterCondition

# Parameter names are f0, f1, ... so they never collide with limit/offset.
_PARAM_PREFIX = "f"

_PATTERNS: dict[FilterOperator, str] = {
    FilterOperator.CONTAINS: "%{}%",
    FilterOperator.STARTS_WITH: "{}%",
    FilterOperator.ENDS_WITH: "%{}",
}

_COMPARISONS: dict[FilterOperator, str] = {
    FilterOperator.GREATER_THAN: ">",
    FilterOperator.LESS_THAN: "<",
}


@dataclass(frozen=True)
class CompiledFilter:
    """A WHERE predicate plus the values bound to its placeholders.

    ``predicate`` is None when no condition survived validation. ``params``
    keeps insertion order, which is the order placeholders were allocated.
    """

    predicate: sql.Composable | None = None
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.predicate is None

    @property
    def values(self) -> list[Any]:
        return list(self.params.values())

    def where_clause(self) -> sql.Composable:
        if self.predicate is None:
            return sql.SQL("")
        return sql.SQL("WHERE {}").format(self.predicate)


def parse_number(value: str) -> int | float | None:
    """Numeric interpretation of a filter value, or None when it is not one."""
    text = value.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class _ParamAllocator:
    def __init__(self) -> None:
        self.params: dict[str, Any] = {}

    def bind(self, value: Any) -> sql.Placeholder:
        name = f"{_PARAM_PREFIX}{len(self.params)}"
        self.params[name] = value
        return sql.Placeholder(name)


def _as_text(column: str) -> sql.Composable:
    return sql.SQL("{}::text").format(sql.Identifier(column))


def _global_search(
    condition: FilterCondition,
    columns: Sequence[ColumnInfo],
    allocator: _ParamAllocator,
) -> sql.Composable | None:
    searchable = [col for col in columns if col.is_searchable]
    if not searchable:
        return None
    placeholder = allocator.bind(f"%{condition.value}%")
    matches = [
        sql.SQL("{} ILIKE {}").format(_as_text(col.name), placeholder)
        for col in searchable
    ]
    return sql.SQL("({})").format(sql.SQL(" OR ").join(matches))


def _column_condition(
    condition: FilterCondition,
    column_info: ColumnInfo | None,
    allocator: _ParamAllocator,
) -> sql.Composable:
    column = sql.Identifier(condition.column)
    op = condition.operator
    value = condition.value or ""

    if op is FilterOperator.IS_NULL:
        return sql.SQL("{} IS NULL").format(column)
    if op is FilterOperator.IS_NOT_NULL:
        return sql.SQL("{} IS NOT NULL").format(column)
    if op is FilterOperator.EQUALS:
        return sql.SQL("{} = {}").format(
            _as_text(condition.column), allocator.bind(value)
        )
    if op in _PATTERNS:
        pattern = _PATTERNS[op].format(value)
        return sql.SQL("{} ILIKE {}").format(
            _as_text(condition.column), allocator.bind(pattern)
        )

    comparison = sql.SQL(_COMPARISONS[op])
    number = parse_number(value)
    if number is not None and column_info is not None and column_info.is_numeric:
        return sql.SQL("{} {} {}").format(column, comparison, allocator.bind(number))
    # Anything else orders by its text representation, whatever the value.
    return sql.SQL("{} {} {}").format(
        _as_text(condition.column), comparison, allocator.bind(value)
    )


def compile_filters(
    filters: Sequence[FilterCondition], columns: Sequence[ColumnInfo]
) -> CompiledFilter:
    """Translate filter conditions into one AND-combined predicate.

    Conditions without a value are skipped unless the operator needs none.
    A global-search condition becomes a parenthesized OR group over every
    searchable column, sharing a single bound parameter. ``greater_than``
    and ``less_than`` compare numerically only on numeric columns.
    """
    log = structlog.get_logger()
    allocator = _ParamAllocator()
    by_name = {col.name: col for col in columns}
    conditions: list[sql.Composable] = []

    for condition in filters:
        needs_value = condition.operator.requires_value or condition.is_global_search
        if needs_value and not condition.has_value:
            log.debug(
                "skipping filter without value",
                column=condition.column,
                operator=condition.operator.value,
            )
            continue

        if condition.is_global_search:
            group = _global_search(condition, columns, allocator)
            if group is not None:
                conditions.append(group)
            continue

        conditions.append(
            _column_condition(condition, by_name.get(condition.column), allocator)
        )

    if not conditions:
        return CompiledFilter()
    return CompiledFilter(
        predicate=sql.SQL(" AND ").join(conditions), params=allocator.params
    )
