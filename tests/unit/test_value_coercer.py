"""
Unit tests for value coercion.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from feedsync.common.errors import CoercionError
from feedsync.ingest.models import Column, SqlType, Table
from feedsync.ingest.type_detector import detect_sql_type
from feedsync.ingest.value_coercer import ValueCoercer


@pytest.fixture
def coercer():
    return ValueCoercer()


class TestCoerceText:
    """Raw text conversion per column type."""

    def test_integer(self, coercer):
        assert coercer.coerce("offers", "id", SqlType.INTEGER, "101") == 101
        assert coercer.coerce("offers", "id", SqlType.INTEGER, " -7 ") == -7

    def test_long_integer(self, coercer):
        assert coercer.coerce("offers", "id", SqlType.LONG_INTEGER, "123456789012") == 123456789012

    def test_decimal(self, coercer):
        assert coercer.coerce("offers", "price", SqlType.DECIMAL, "19.99") == Decimal("19.99")

    def test_decimal_with_comma(self, coercer):
        assert coercer.coerce("offers", "price", SqlType.DECIMAL, "19,99") == Decimal("19.99")

    @pytest.mark.parametrize("raw", ["true", "TRUE", "1", "t", "yes", " Yes "])
    def test_boolean_true(self, coercer, raw):
        assert coercer.coerce("offers", "available", SqlType.BOOLEAN, raw) is True

    @pytest.mark.parametrize("raw", ["false", "0", "f", "no", "NO"])
    def test_boolean_false(self, coercer, raw):
        assert coercer.coerce("offers", "available", SqlType.BOOLEAN, raw) is False

    def test_boolean_unrecognized_is_false(self, coercer):
        assert coercer.coerce("offers", "available", SqlType.BOOLEAN, "maybe") is False

    def test_date(self, coercer):
        assert coercer.coerce("offers", "since", SqlType.DATE, "2024-03-01") == date(2024, 3, 1)

    def test_timestamp(self, coercer):
        value = coercer.coerce("offers", "updated", SqlType.TIMESTAMP, "2024-03-01T10:15:00")

        assert value == datetime(2024, 3, 1, 10, 15)

    def test_timestamp_with_offset(self, coercer):
        value = coercer.coerce("offers", "updated", SqlType.TIMESTAMP, "2024-03-01T10:15:00+03:00")

        assert value.utcoffset() == timedelta(hours=3)

    def test_text(self, coercer):
        assert coercer.coerce("offers", "name", SqlType.TEXT, "Basic tee") == "Basic tee"

    def test_text_keeps_leading_zeros(self, coercer):
        assert coercer.coerce("offers", "barcode", SqlType.TEXT, "00042") == "00042"


class TestCoerceTyped:
    """Already-typed values pass through or convert losslessly."""

    def test_int_passes(self, coercer):
        assert coercer.coerce("t", "c", SqlType.INTEGER, 5) == 5

    def test_float_to_decimal(self, coercer):
        assert coercer.coerce("t", "c", SqlType.DECIMAL, 2.5) == Decimal("2.5")

    def test_bool_passes(self, coercer):
        assert coercer.coerce("t", "c", SqlType.BOOLEAN, True) is True

    def test_date_passes(self, coercer):
        assert coercer.coerce("t", "c", SqlType.DATE, date(2024, 1, 2)) == date(2024, 1, 2)

    def test_datetime_passes(self, coercer):
        moment = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
        assert coercer.coerce("t", "c", SqlType.TIMESTAMP, moment) == moment

    def test_number_to_text(self, coercer):
        assert coercer.coerce("t", "c", SqlType.TEXT, 42) == "42"

    def test_untyped_column_passes_raw(self, coercer):
        assert coercer.coerce("t", "c", None, "x") == "x"


class TestBlankValues:
    """None and blank values always bind as NULL."""

    @pytest.mark.parametrize("raw", [None, "", "   "])
    @pytest.mark.parametrize("sql_type", list(SqlType))
    def test_blank_is_none(self, coercer, raw, sql_type):
        assert coercer.coerce("t", "c", sql_type, raw) is None


class TestCoercionErrors:
    """Invalid values raise CoercionError with full context."""

    @pytest.mark.parametrize("sql_type,raw", [
        (SqlType.INTEGER, "abc"),
        (SqlType.INTEGER, "1.5"),
        (SqlType.INTEGER, "2147483648"),
        (SqlType.LONG_INTEGER, "9223372036854775808"),
        (SqlType.DECIMAL, "abc"),
        (SqlType.DECIMAL, "NaN"),
        (SqlType.DECIMAL, "Infinity"),
        (SqlType.DECIMAL, "1_000.5"),
        (SqlType.DECIMAL, "0x1F"),
        (SqlType.DATE, "2024-13-01"),
        (SqlType.DATE, "yesterday"),
        (SqlType.TIMESTAMP, "soon"),
    ])
    def test_invalid_text(self, coercer, sql_type, raw):
        with pytest.raises(CoercionError):
            coercer.coerce("offers", "c", sql_type, raw)

    def test_bool_is_not_an_integer(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("t", "c", SqlType.INTEGER, True)

    def test_bool_is_not_a_decimal(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("t", "c", SqlType.DECIMAL, False)

    def test_datetime_is_not_a_date(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("t", "c", SqlType.DATE, datetime(2024, 1, 1))

    def test_integer_bounds(self, coercer):
        assert coercer.coerce("t", "c", SqlType.INTEGER, "2147483647") == 2 ** 31 - 1
        assert coercer.coerce("t", "c", SqlType.INTEGER, "-2147483648") == -(2 ** 31)

    def test_error_context(self, coercer):
        with pytest.raises(CoercionError) as exc_info:
            coercer.coerce("offers", "price", SqlType.DECIMAL, "cheap")

        error = exc_info.value
        assert error.table_name == "offers"
        assert error.column == "price"
        assert error.sql_type == SqlType.DECIMAL
        assert error.raw == "cheap"
        assert str(error) == (
            "Cannot convert value for offers.price to type decimal: raw='cheap' (str)"
        )
        assert error.__cause__ is not None


class TestCoerceRow:
    """Tests for whole-row coercion."""

    def test_coerce_row_in_given_order(self, coercer):
        table = Table("offers", (
            Column("id", SqlType.INTEGER),
            Column("available", SqlType.BOOLEAN),
            Column("price", SqlType.DECIMAL),
        ))
        row = {"id": "1", "price": "19.99", "available": "true"}

        typed = coercer.coerce_row(table, row, ["available", "price"])

        assert list(typed) == ["available", "price"]
        assert typed == {"available": True, "price": Decimal("19.99")}

    def test_missing_values_become_none(self, coercer):
        table = Table("offers", (Column("id", SqlType.INTEGER), Column("name", SqlType.TEXT)))

        assert coercer.coerce_row(table, {"id": "1"}, ["name"]) == {"name": None}


class TestDetectThenCoerce:
    """Values converted with the type their own text was detected as."""

    @pytest.mark.parametrize("raw,sql_type,expected", [
        ("999999999", SqlType.INTEGER, 999999999),
        ("-999999999", SqlType.INTEGER, -999999999),
        ("-2147483648", SqlType.LONG_INTEGER, -(2 ** 31)),
        ("123456789012345678", SqlType.LONG_INTEGER, 123456789012345678),
        ("-999999999999999999", SqlType.LONG_INTEGER, -999999999999999999),
        ("19.99", SqlType.DECIMAL, Decimal("19.99")),
        ("-0.5", SqlType.DECIMAL, Decimal("-0.5")),
        ("TRUE", SqlType.BOOLEAN, True),
        ("false", SqlType.BOOLEAN, False),
        ("2024-03-01", SqlType.DATE, date(2024, 3, 1)),
        ("2024-02-29", SqlType.DATE, date(2024, 2, 29)),
        ("2024-03-01T10:15:00", SqlType.TIMESTAMP, datetime(2024, 3, 1, 10, 15)),
        ("2024-03-01T10:15:00+03:00", SqlType.TIMESTAMP,
         datetime(2024, 3, 1, 10, 15, tzinfo=timezone(timedelta(hours=3)))),
        ("Basic tee", SqlType.TEXT, "Basic tee"),
    ])
    def test_well_formed_values(self, coercer, raw, sql_type, expected):
        detected = detect_sql_type(raw)

        assert detected == sql_type
        assert coercer.coerce("offers", "c", detected, raw) == expected

    @pytest.mark.parametrize("raw,sql_type", [
        ("2024-03-01T", SqlType.TIMESTAMP),
        ("2024-03-01Tnoon", SqlType.TIMESTAMP),
        ("2024-02-30", SqlType.DATE),
    ])
    def test_pattern_only_matches_fail(self, coercer, raw, sql_type):
        detected = detect_sql_type(raw)

        assert detected == sql_type
        with pytest.raises(CoercionError):
            coercer.coerce("offers", "c", detected, raw)


def test_decimal_exponent(coercer):
    assert coercer.coerce("t", "c", SqlType.DECIMAL, "1.5E3") == Decimal("1500")
