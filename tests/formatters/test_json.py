"""Tests for JSONFormatter."""

import json
import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from pgbrowse.formatters.base import Formatter
from pgbrowse.formatters.json import JSONFormatter
from tests.fakes import make_result


def _parse(result, **kwargs):
    return json.loads("\n".join(JSONFormatter(**kwargs).format(result)))


@pytest.mark.unit
def test_implements_protocol():
    assert isinstance(JSONFormatter(), Formatter)


@pytest.mark.unit
def test_rows_as_objects():
    result = make_result(["id", "name"], [(1, "alice"), (2, None)])
    assert _parse(result) == [{"id": 1, "name": "alice"}, {"id": 2, "name": None}]


@pytest.mark.unit
def test_compact_is_single_line():
    result = make_result(["id"], [(1,), (2,)])
    lines = list(JSONFormatter(compact=True).format(result))
    assert lines == ['[{"id": 1}, {"id": 2}]']


@pytest.mark.unit
def test_pretty_by_default():
    output = "\n".join(JSONFormatter().format(make_result(["id"], [(1,)])))
    assert "\n  " in output


@pytest.mark.unit
def test_driver_types_serialized():
    row = (
        Decimal("12.50"),
        datetime(2024, 3, 1, 12, 0, tzinfo=UTC),
        uuid.UUID("12345678-1234-5678-1234-567812345678"),
        b"\x00\x10",
    )
    result = make_result(["price", "at", "uid", "raw"], [row])
    assert _parse(result) == [
        {
            "price": "12.50",
            "at": "2024-03-01T12:00:00+00:00",
            "uid": "12345678-1234-5678-1234-567812345678",
            "raw": "\\x0010",
        }
    ]


@pytest.mark.unit
def test_empty_result():
    assert _parse(make_result(["id"], [])) == []
