"""Data models for pgbrowse.

Pydantic models for raw query results returned by PgClient.execute_query(),
catalog metadata, filter conditions and paginated table data.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

GLOBAL_SEARCH_PREFIX = "_global_search_"

# Substrings of information_schema data types that the global search scans.
SEARCHABLE_TYPE_MARKERS: tuple[str, ...] = (
    "char",
    "text",
    "int",
    "numeric",
    "decimal",
    "double precision",
    "real",
)

# information_schema data types that order numerically against a number.
NUMERIC_TYPES: frozenset[str] = frozenset(
    {
        "smallint",
        "integer",
        "bigint",
        "numeric",
        "decimal",
        "real",
        "double precision",
    }
)


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_oid: int
    type_name: str


class QueryResult(BaseModel):
    """Result of a SQL query execution."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[tuple[Any, ...]]
    row_count: int
    status_message: str

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    def as_dicts(self) -> list[dict[str, Any]]:
        names = self.column_names
        return [dict(zip(names, row, strict=True)) for row in self.rows]


class ColumnInfo(BaseModel):
    """One table column as reported by information_schema.columns.

    Serialized with the catalog's own field names (``by_alias=True``).
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="column_name")
    data_type: str
    is_nullable: bool
    default: str | None = Field(default=None, alias="column_default")
    max_length: int | None = Field(default=None, alias="character_maximum_length")

    @field_validator("is_nullable", mode="before")
    @classmethod
    def parse_yes_no(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() == "YES"
        return v

    @field_serializer("is_nullable")
    def dump_yes_no(self, v: bool) -> str:
        return "YES" if v else "NO"

    @property
    def is_searchable(self) -> bool:
        data_type = self.data_type.lower()
        return any(marker in data_type for marker in SEARCHABLE_TYPE_MARKERS)

    @property
    def is_numeric(self) -> bool:
        return self.data_type.lower() in NUMERIC_TYPES


class TableInfo(BaseModel):
    table_name: str
    schema_name: str
    column_count: int


class FilterOperator(StrEnum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    @property
    def requires_value(self) -> bool:
        return self not in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


class FilterCondition(BaseModel):
    """A single user filter.

    A column name starting with GLOBAL_SEARCH_PREFIX does not name a real
    column; it asks for ``value`` to be matched against every searchable
    column.
    """

    column: str = Field(min_length=1)
    operator: FilterOperator
    value: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        # The UI sends whatever the input widget holds; numbers become text.
        if isinstance(v, bool):
            return str(v).lower()
        if isinstance(v, (int, float, Decimal)):
            return str(v)
        return v

    @property
    def is_global_search(self) -> bool:
        return self.column.startswith(GLOBAL_SEARCH_PREFIX)

    @property
    def has_value(self) -> bool:
        return self.value is not None and self.value != ""


class TableData(BaseModel):
    """One page of rows plus the metadata needed to render it."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    columns: list[ColumnInfo]
    rows: list[dict[str, Any]]
    total_count: int = Field(alias="totalCount")
    filtered_count: int | None = Field(default=None, alias="filteredCount")

    def to_response(self) -> dict[str, Any]:
        """JSON-ready payload; ``filteredCount`` is omitted when no filter applied."""
        payload: dict[str, Any] = {
            "columns": [col.model_dump(by_alias=True) for col in self.columns],
            "rows": [
                {key: to_jsonable(val) for key, val in row.items()} for row in self.rows
            ],
            "totalCount": self.total_count,
        }
        if self.filtered_count is not None:
            payload["filteredCount"] = self.filtered_count
        return payload


def to_jsonable(val: Any) -> Any:
    """Normalize a driver value into something json.dumps accepts."""
    if isinstance(val, (bool, int, float, str, type(None))):
        return val
    if isinstance(val, (datetime.date, datetime.time)):
        return val.isoformat()
    if isinstance(val, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(val).hex()
    if isinstance(val, dict):
        return {str(k): to_jsonable(v) for k, v in val.items()}
    if isinstance(val, (list, tuple)):
        return [to_jsonable(v) for v in val]
    return str(val)
