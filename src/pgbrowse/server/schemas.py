"""Request and response bodies for the HTTP API.

Field names on the wire are camelCase to match the browser client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pgbrowse.core.config import ConnectionConfig
from pgbrowse.core.models import TableInfo
from pgbrowse.core.postgres import DEFAULT_SCHEMA


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConnectRequest(_Request):
    connection_id: str = Field(alias="connectionId", min_length=1)
    config: ConnectionConfig


class ConnectEnvRequest(_Request):
    connection_id: str = Field(alias="connectionId", min_length=1)


class UpdateCellRequest(_Request):
    connection_id: str = Field(alias="connectionId", min_length=1)
    table_name: str = Field(alias="tableName", min_length=1)
    schema_name: str = Field(default=DEFAULT_SCHEMA, alias="schemaName", min_length=1)
    primary_key_column: str = Field(alias="primaryKeyColumn", min_length=1)
    primary_key_value: Any = Field(default=None, alias="primaryKeyValue")
    column_name: str = Field(alias="columnName", min_length=1)
    new_value: Any = Field(default=None, alias="newValue")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str


class ConnectEnvResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    connection_id: str = Field(serialization_alias="connectionId")
    config: dict[str, Any]


class TablesResponse(BaseModel):
    tables: list[TableInfo]
