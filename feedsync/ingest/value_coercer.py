"""
Conversion of raw feed values into typed database parameters.

Type detection is a pattern heuristic, so a value it accepts is not always
convertible. Well-formed numbers, booleans, ISO dates and ISO date-times
convert back to the detected type, but strings such as "2024-02-30" (no
such day) or "2024-03-01T" (no time part) match the date patterns and
still fail the strict ISO parse here with a CoercionError.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from numbers import Number
from typing import Any, Callable, Dict, Iterable, Optional

from feedsync.common.errors import CoercionError
from feedsync.ingest.models import Row, SqlType, Table, TypedRow

_INT_TEXT_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_TEXT_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")

INTEGER_RANGE = (-(2 ** 31), 2 ** 31 - 1)
LONG_INTEGER_RANGE = (-(2 ** 63), 2 ** 63 - 1)

TRUE_TOKENS = frozenset({"1", "true", "t", "yes"})
FALSE_TOKENS = frozenset({"0", "false", "f", "no"})


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _to_int(raw: Any, bounds) -> int:
    if isinstance(raw, bool):
        raise ValueError("boolean is not an integer")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, Number):
        value = int(raw)
    else:
        text = str(raw).strip()
        if not _INT_TEXT_RE.fullmatch(text):
            raise ValueError(f"not an integer: {text!r}")
        value = int(text)

    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{value} is out of range [{low}, {high}]")
    return value


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValueError("boolean is not a decimal")
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, Number):
        value = Decimal(str(raw))
    else:
        text = str(raw).strip().replace(",", ".")
        if not _DECIMAL_TEXT_RE.fullmatch(text):
            raise ValueError(f"not a decimal: {text!r}")
        value = Decimal(text)

    if not value.is_finite():
        raise ValueError(f"non-finite decimal: {value}")
    return value


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in TRUE_TOKENS:
        return True
    if text in FALSE_TOKENS:
        return False
    return text == "true"


def _to_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        raise ValueError("date-time is not a calendar date")
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw).strip())


def _to_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    return datetime.fromisoformat(str(raw).strip())


def _to_text(raw: Any) -> str:
    return raw if isinstance(raw, str) else str(raw)


_CONVERTERS: Dict[SqlType, Callable[[Any], Any]] = {
    SqlType.INTEGER: lambda raw: _to_int(raw, INTEGER_RANGE),
    SqlType.LONG_INTEGER: lambda raw: _to_int(raw, LONG_INTEGER_RANGE),
    SqlType.DECIMAL: _to_decimal,
    SqlType.BOOLEAN: _to_bool,
    SqlType.DATE: _to_date,
    SqlType.TIMESTAMP: _to_timestamp,
    SqlType.TEXT: _to_text,
}


class ValueCoercer:
    """
    Converts raw row values to the Python types matching their columns.

    None and blank strings always become None. Every conversion failure is
    reported as a CoercionError naming the table, column, type and value.
    """

    def coerce(self, table_name: str, column: str, sql_type: Optional[SqlType], raw: Any) -> Any:
        if _is_blank(raw):
            return None
        if sql_type is None:
            return raw

        try:
            return _CONVERTERS[SqlType(sql_type)](raw)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise CoercionError(table_name, column, sql_type, raw) from e

    def coerce_row(self, table: Table, row: Row, columns: Iterable[str]) -> TypedRow:
        """
        Coerce the given columns of a row using the table's column types.

        Args:
            table: Inferred table definition
            row: Raw row
            columns: Column names to convert, in output order

        Returns:
            Ordered mapping of column name to typed value
        """
        types = table.column_types
        return {
            column: self.coerce(table.name, column, types.get(column), row.get(column))
            for column in columns
        }
