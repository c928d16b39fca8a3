"""Tests for the filter compiler."""

import pytest

from pgbrowse.core.filters import CompiledFilter, compile_filters, parse_number
from pgbrowse.core.models import GLOBAL_SEARCH_PREFIX, ColumnInfo, FilterCondition

COLUMNS = [
    ColumnInfo(column_name="id", data_type="integer", is_nullable="NO"),
    ColumnInfo(column_name="name", data_type="character varying", is_nullable="YES"),
    ColumnInfo(column_name="bio", data_type="text", is_nullable="YES"),
    ColumnInfo(column_name="active", data_type="boolean", is_nullable="YES"),
    ColumnInfo(column_name="created", data_type="timestamp", is_nullable="YES"),
]


def _filter(column, operator, value=None):
    return FilterCondition(column=column, operator=operator, value=value)


def _where(compiled: CompiledFilter) -> str:
    return compiled.where_clause().as_string()


@pytest.mark.unit
class TestParseNumber:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("42", 42), ("-7", -7), ("3.5", 3.5), (" 10 ", 10), ("1e3", 1000.0)],
    )
    def test_numbers(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "nan", "inf", "12abc"])
    def test_not_numbers(self, raw):
        assert parse_number(raw) is None

    def test_int_stays_int(self):
        assert isinstance(parse_number("5"), int)


@pytest.mark.unit
class TestEmpty:
    def test_no_filters(self):
        compiled = compile_filters([], COLUMNS)
        assert compiled.is_empty
        assert compiled.params == {}
        assert _where(compiled) == ""

    def test_only_valueless_conditions(self):
        compiled = compile_filters(
            [_filter("name", "equals", ""), _filter("name", "contains")], COLUMNS
        )
        assert compiled.is_empty


@pytest.mark.unit
class TestColumnConditions:
    def test_equals_compares_text(self):
        compiled = compile_filters([_filter("name", "equals", "Bob")], COLUMNS)
        assert _where(compiled) == 'WHERE "name"::text = %(f0)s'
        assert compiled.values == ["Bob"]

    @pytest.mark.parametrize(
        ("operator", "pattern"),
        [
            ("contains", "%ob%"),
            ("starts_with", "ob%"),
            ("ends_with", "%ob"),
        ],
    )
    def test_patterns_are_case_insensitive(self, operator, pattern):
        compiled = compile_filters([_filter("name", operator, "ob")], COLUMNS)
        assert _where(compiled) == 'WHERE "name"::text ILIKE %(f0)s'
        assert compiled.values == [pattern]

    def test_greater_than_numeric(self):
        compiled = compile_filters([_filter("id", "greater_than", "10")], COLUMNS)
        assert _where(compiled) == 'WHERE "id" > %(f0)s'
        assert compiled.values == [10]

    def test_less_than_float(self):
        compiled = compile_filters([_filter("id", "less_than", "2.5")], COLUMNS)
        assert _where(compiled) == 'WHERE "id" < %(f0)s'
        assert compiled.values == [2.5]

    def test_greater_than_non_numeric_compares_text(self):
        compiled = compile_filters([_filter("name", "greater_than", "abc")], COLUMNS)
        assert _where(compiled) == 'WHERE "name"::text > %(f0)s'
        assert compiled.values == ["abc"]

    @pytest.mark.parametrize("column", ["name", "bio", "created"])
    def test_numeric_value_on_non_numeric_column_compares_text(self, column):
        compiled = compile_filters([_filter(column, "greater_than", "5")], COLUMNS)
        assert _where(compiled) == f'WHERE "{column}"::text > %(f0)s'
        assert compiled.values == ["5"]

    def test_numeric_value_on_unknown_column_compares_text(self):
        compiled = compile_filters([_filter("ghost", "less_than", "5")], COLUMNS)
        assert _where(compiled) == 'WHERE "ghost"::text < %(f0)s'
        assert compiled.values == ["5"]

    def test_non_numeric_value_on_numeric_column_compares_text(self):
        compiled = compile_filters([_filter("id", "greater_than", "1a")], COLUMNS)
        assert _where(compiled) == 'WHERE "id"::text > %(f0)s'
        assert compiled.values == ["1a"]

    def test_is_null_has_no_params(self):
        compiled = compile_filters([_filter("bio", "is_null")], COLUMNS)
        assert _where(compiled) == 'WHERE "bio" IS NULL'
        assert compiled.params == {}

    def test_is_not_null_ignores_value(self):
        compiled = compile_filters([_filter("bio", "is_not_null", "x")], COLUMNS)
        assert _where(compiled) == 'WHERE "bio" IS NOT NULL'
        assert compiled.params == {}

    def test_conditions_joined_with_and(self):
        compiled = compile_filters(
            [
                _filter("name", "contains", "a"),
                _filter("bio", "is_null"),
                _filter("id", "less_than", "5"),
            ],
            COLUMNS,
        )
        assert _where(compiled) == (
            'WHERE "name"::text ILIKE %(f0)s AND "bio" IS NULL AND "id" < %(f1)s'
        )
        assert compiled.values == ["%a%", 5]

    def test_skipped_condition_does_not_consume_param(self):
        compiled = compile_filters(
            [_filter("name", "equals", ""), _filter("bio", "equals", "x")], COLUMNS
        )
        assert _where(compiled) == 'WHERE "bio"::text = %(f0)s'


@pytest.mark.unit
class TestGlobalSearch:
    def test_or_group_over_searchable_columns(self):
        compiled = compile_filters(
            [_filter(GLOBAL_SEARCH_PREFIX, "contains", "abc")], COLUMNS
        )
        assert _where(compiled) == (
            'WHERE ("id"::text ILIKE %(f0)s OR "name"::text ILIKE %(f0)s '
            'OR "bio"::text ILIKE %(f0)s)'
        )

    def test_single_shared_param(self):
        compiled = compile_filters(
            [_filter(f"{GLOBAL_SEARCH_PREFIX}x", "equals", "abc")], COLUMNS
        )
        assert compiled.params == {"f0": "%abc%"}

    def test_no_searchable_columns(self):
        columns = [ColumnInfo(column_name="flag", data_type="boolean", is_nullable="NO")]
        compiled = compile_filters(
            [_filter(GLOBAL_SEARCH_PREFIX, "contains", "abc")], columns
        )
        assert compiled.is_empty

    def test_empty_search_skipped(self):
        compiled = compile_filters(
            [_filter(GLOBAL_SEARCH_PREFIX, "is_null", "")], COLUMNS
        )
        assert compiled.is_empty

    def test_combined_with_column_filter(self):
        compiled = compile_filters(
            [
                _filter("id", "greater_than", "3"),
                _filter(GLOBAL_SEARCH_PREFIX, "contains", "bo"),
            ],
            COLUMNS,
        )
        sql_text = _where(compiled)
        assert sql_text.startswith('WHERE "id" > %(f0)s AND (')
        assert compiled.params == {"f0": 3, "f1": "%bo%"}


HOSTILE_VALUES = [
    "'; DROP TABLE users; --",
    "x' OR '1'='1",
    "%(f1)s",
    "\\'; SELECT pg_sleep(10); --",
]


@pytest.mark.unit
class TestInjection:
    @pytest.mark.parametrize("value", HOSTILE_VALUES)
    @pytest.mark.parametrize(
        "operator",
        ["equals", "contains", "starts_with", "ends_with", "greater_than", "less_than"],
    )
    @pytest.mark.parametrize("column", ["name", "id"])
    def test_values_only_in_params(self, column, operator, value):
        compiled = compile_filters([_filter(column, operator, value)], COLUMNS)
        assert value not in _where(compiled)
        assert len(compiled.values) == 1
        assert value in compiled.values[0]

    @pytest.mark.parametrize("value", HOSTILE_VALUES)
    def test_global_search_values_only_in_params(self, value):
        compiled = compile_filters(
            [_filter(GLOBAL_SEARCH_PREFIX, "contains", value)], COLUMNS
        )
        assert value not in _where(compiled)
        assert compiled.values == [f"%{value}%"]

    def test_hostile_column_name_is_quoted(self):
        compiled = compile_filters(
            [_filter('name"; DROP TABLE users; --', "is_null")], COLUMNS
        )
        assert _where(compiled) == 'WHERE "name""; DROP TABLE users; --" IS NULL'
