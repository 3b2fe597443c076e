"""
Per-row write statements.

Builds parameterized INSERT ... ON CONFLICT and UPDATE statements keyed by
the ``id`` column. Column order is always ``id`` first, then the remaining
columns in the order given.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple

from feedsync.ingest.ddl_generator import ID_COLUMN, quote_identifier

QMARK = "?"
FORMAT = "%s"

PARAMSTYLE_PLACEHOLDERS = {
    "qmark": QMARK,
    "format": FORMAT,
    "pyformat": FORMAT,
}


@dataclass(frozen=True)
class WriteStatement:
    """A SQL statement with its positional parameters."""
    sql: str
    params: Tuple[Any, ...] = field(default_factory=tuple)


class StatementBuilder:
    """
    Renders write statements for a DB-API placeholder style.

    Args:
        placeholder: ``?`` (qmark drivers) or ``%s`` (format/pyformat drivers)
    """

    def __init__(self, placeholder: str = QMARK):
        if placeholder not in (QMARK, FORMAT):
            raise ValueError(f"Unsupported placeholder: {placeholder!r}")
        self.placeholder = placeholder

    @classmethod
    def for_paramstyle(cls, paramstyle: str) -> "StatementBuilder":
        try:
            return cls(PARAMSTYLE_PLACEHOLDERS[paramstyle])
        except KeyError:
            raise ValueError(f"Unsupported DB-API paramstyle: {paramstyle!r}")

    def _quote(self, identifier: str) -> str:
        quoted = quote_identifier(identifier)
        if self.placeholder == FORMAT:
            # A literal percent sign must be doubled for format-style drivers
            quoted = quoted.replace("%", "%%")
        return quoted

    def upsert(self, table_name: str, id_value: Any, values: Mapping[str, Any]) -> WriteStatement:
        """
        INSERT the row, or update its non-id columns when the id exists.

        With no non-id columns the conflict action is DO NOTHING.
        """
        columns = [ID_COLUMN] + [c for c in values if c != ID_COLUMN]
        quoted = [self._quote(c) for c in columns]

        if len(columns) == 1:
            conflict_action = "DO NOTHING"
        else:
            assignments = ", ".join(f"{c} = EXCLUDED.{c}" for c in quoted[1:])
            conflict_action = f"DO UPDATE SET {assignments}"

        sql = (
            f"INSERT INTO {self._quote(table_name)}"
            f" ({', '.join(quoted)})"
            f" VALUES ({', '.join([self.placeholder] * len(columns))})"
            f" ON CONFLICT ({self._quote(ID_COLUMN)}) {conflict_action}"
        )
        params = (id_value,) + tuple(values[c] for c in columns[1:])
        return WriteStatement(sql, params)

    def update(self, table_name: str, id_value: Any, values: Mapping[str, Any]) -> WriteStatement:
        """
        UPDATE the non-id columns of the row with the given id.

        Raises:
            ValueError: If there is nothing to update
        """
        columns = [c for c in values if c != ID_COLUMN]
        if not columns:
            raise ValueError(f"No columns to update for {table_name}")

        assignments = ", ".join(f"{self._quote(c)} = {self.placeholder}" for c in columns)
        sql = (
            f"UPDATE {self._quote(table_name)}"
            f" SET {assignments}"
            f" WHERE {self._quote(ID_COLUMN)} = {self.placeholder}"
        )
        params = tuple(values[c] for c in columns) + (id_value,)
        return WriteStatement(sql, params)
