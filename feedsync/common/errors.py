"""
Exception hierarchy for feed synchronization.

Every error raised by feedsync derives from FeedSyncError so callers can
catch the whole family at a service boundary.
"""

from typing import Any, Iterable, Optional, Set


class FeedSyncError(Exception):
    """Base exception for feedsync."""
    pass


class InvalidArgumentError(FeedSyncError, ValueError):
    """Raised when a required identifier or input is blank or missing."""
    pass


class FeedParseError(FeedSyncError):
    """Raised when a feed document cannot be read or parsed."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class TableNotFoundError(FeedSyncError, LookupError):
    """Raised when a table is unknown to the inferred schema or the database."""

    def __init__(self, table_name: str, message: Optional[str] = None):
        super().__init__(message or f"Table not found: {table_name}")
        self.table_name = table_name


class SchemaMismatchError(FeedSyncError):
    """
    Raised when the live table structure differs from the inferred one.

    Carries both column-name sets plus their differences so the operator
    can decide whether to fix the feed or migrate the table.
    """

    def __init__(self, table_name: str, expected: Iterable[str], actual: Iterable[str]):
        self.table_name = table_name
        self.expected: Set[str] = set(expected)
        self.actual: Set[str] = set(actual)
        self.missing: Set[str] = self.expected - self.actual
        self.unexpected: Set[str] = self.actual - self.expected
        super().__init__(
            f"Table structure in database differs from feed for '{table_name}': "
            f"feed={sorted(self.expected)} database={sorted(self.actual)} "
            f"missing={sorted(self.missing)} unexpected={sorted(self.unexpected)}"
        )


class CoercionError(FeedSyncError, ValueError):
    """Raised when a raw feed value cannot be converted to its column type."""

    def __init__(self, table_name: str, column: str, sql_type: Any, raw: Any):
        self.table_name = table_name
        self.column = column
        self.sql_type = sql_type
        self.raw = raw
        type_name = getattr(sql_type, "ddl", sql_type)
        super().__init__(
            f"Cannot convert value for {table_name}.{column} to type {type_name}: "
            f"raw={raw!r} ({type(raw).__name__})"
        )


class StoreError(FeedSyncError):
    """Raised when the underlying database operation fails."""
    pass
