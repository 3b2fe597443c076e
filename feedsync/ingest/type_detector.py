"""
Primitive type detection for raw feed values.

The chain order is significant: the first matching pattern wins, and the
9/18 digit boundaries decide between integer and bigint columns.
"""

import re
from typing import List, Optional, Pattern, Tuple

from feedsync.ingest.models import SqlType

_INTEGER_RE = re.compile(r"-?[0-9]{1,9}")
_LONG_INTEGER_RE = re.compile(r"-?[0-9]{10,18}")
_DECIMAL_RE = re.compile(r"-?[0-9]+\.[0-9]+")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T.*", re.DOTALL)

_PATTERN_CHAIN: List[Tuple[Pattern[str], SqlType]] = [
    (_INTEGER_RE, SqlType.INTEGER),
    (_LONG_INTEGER_RE, SqlType.LONG_INTEGER),
    (_DECIMAL_RE, SqlType.DECIMAL),
    (_DATE_RE, SqlType.DATE),
    (_TIMESTAMP_RE, SqlType.TIMESTAMP),
]


def is_boolean(value: str) -> bool:
    return value.lower() in ("true", "false")


def detect_sql_type(value: Optional[str]) -> SqlType:
    """
    Detect the column type of a raw string value.

    Args:
        value: Raw attribute value or element text

    Returns:
        The first matching SqlType, TEXT when nothing matches
    """
    if value is None:
        return SqlType.TEXT

    if is_boolean(value):
        return SqlType.BOOLEAN

    for pattern, sql_type in _PATTERN_CHAIN:
        if pattern.fullmatch(value):
            return sql_type

    return SqlType.TEXT
