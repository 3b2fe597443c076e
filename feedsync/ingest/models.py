"""
Data model for inferred feed schemas.

A FeedSchema is the output of one inference pass: an ordered collection of
Tables, each holding its Columns in first-occurrence order.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from feedsync.common.errors import TableNotFoundError


class SqlType(str, Enum):
    """Primitive column types inferred from raw feed text."""
    INTEGER = "integer"
    LONG_INTEGER = "bigint"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TEXT = "varchar"

    @property
    def ddl(self) -> str:
        """DDL type name used in CREATE TABLE statements."""
        return self.value


@dataclass(frozen=True)
class Column:
    """A single inferred column."""
    name: str
    type: SqlType


@dataclass(frozen=True)
class Table:
    """A table inferred from one feed section."""
    name: str
    columns: Tuple[Column, ...] = ()

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    @property
    def column_types(self) -> Dict[str, SqlType]:
        return {column.name: column.type for column in self.columns}

    def has_column(self, name: str) -> bool:
        return any(column.name == name for column in self.columns)

    def type_of(self, name: str) -> Optional[SqlType]:
        for column in self.columns:
            if column.name == name:
                return column.type
        return None


Row = Dict[str, Optional[str]]
TypedRow = Dict[str, Any]


@dataclass(frozen=True)
class FeedSchema:
    """Ordered result of a single inference pass over a feed document."""
    tables: Tuple[Table, ...] = field(default_factory=tuple)

    @property
    def table_names(self) -> List[str]:
        return [table.name for table in self.tables]

    def table(self, name: str) -> Table:
        """
        Look up a table by section name.

        Raises:
            TableNotFoundError: If the inference pass produced no such table
        """
        for table in self.tables:
            if table.name == name:
                return table
        raise TableNotFoundError(name)

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    def __contains__(self, name: object) -> bool:
        return any(table.name == name for table in self.tables)
