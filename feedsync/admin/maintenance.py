"""
Maintenance operations for feed tables.

Provides administrative helpers for:
- Dropping every table of a schema
- Dropping selected tables
"""

import logging
from typing import Collection, List, Optional

from feedsync.common.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"


class MaintenanceHandlers:
    """
    Table maintenance layered on the database collaborator.

    Table names are logical (unquoted); quoting is applied when the
    statement is built.
    """

    def __init__(self, database, default_schema: Optional[str] = DEFAULT_SCHEMA):
        """
        Args:
            database: Collaborator exposing list_tables() and drop_table()
            default_schema: Schema used by drop_all_tables() and drop_tables()
        """
        self.database = database
        self.default_schema = default_schema

    def drop_all_tables(self, cascade: bool = False) -> List[str]:
        """
        Drop every table in the default schema.

        Args:
            cascade: Also drop dependent objects

        Returns:
            Dropped table names, in drop order
        """
        return self.drop_all_tables_in_schema(self.default_schema, cascade)

    def drop_all_tables_in_schema(self, schema: Optional[str], cascade: bool = False) -> List[str]:
        """
        Drop every table in a schema.

        Tables are dropped in reverse dependency order so that referencing
        tables go before the tables they reference.
        """
        self._require_schema(schema)

        table_names = list(reversed(self.database.list_tables(schema)))
        for table_name in table_names:
            self.database.drop_table(table_name, cascade=cascade, schema=schema)

        logger.info(f"Dropped {len(table_names)} table(s) in schema {schema}: {table_names}")
        return table_names

    def drop_tables(self, table_names: Collection[str], cascade: bool = False) -> List[str]:
        """Drop only the given tables in the default schema."""
        return self.drop_tables_in_schema(self.default_schema, table_names, cascade)

    def drop_tables_in_schema(
        self,
        schema: Optional[str],
        table_names: Collection[str],
        cascade: bool = False,
    ) -> List[str]:
        """
        Drop only the given tables in a schema.

        Raises:
            InvalidArgumentError: If the schema, the collection or any name is blank
        """
        self._require_schema(schema)
        if table_names is None:
            raise InvalidArgumentError("table_names must not be None")

        names = list(table_names)
        for table_name in names:
            if table_name is None or not table_name.strip():
                raise InvalidArgumentError("table_name must not be blank")

        for table_name in names:
            self.database.drop_table(table_name, cascade=cascade, schema=schema)

        logger.info(f"Dropped {len(names)} table(s) in schema {schema}: {names}")
        return names

    def _require_schema(self, schema: Optional[str]) -> None:
        # None selects the database's default schema (e.g. SQLite "main")
        if schema is not None and not schema.strip():
            raise InvalidArgumentError("schema must not be blank")
