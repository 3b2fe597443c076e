"""
DDL Generator for inferred feed tables.

Generates PostgreSQL CREATE TABLE statements with the ``id`` column as
primary key and a trailing audit timestamp column.
"""

import logging
from typing import List, Optional

from feedsync.ingest.models import FeedSchema, Table

logger = logging.getLogger(__name__)

ID_COLUMN = "id"
AUDIT_COLUMN = "created_at"


def quote_identifier(identifier: str) -> str:
    """Double-quote an identifier, doubling embedded quotes."""
    return '"' + identifier.replace('"', '""') + '"'


def quote_qualified_identifier(schema: Optional[str], identifier: str) -> str:
    """Quote ``schema.identifier`` (or just the identifier when schema is None)."""
    if schema is None:
        return quote_identifier(identifier)
    return f"{quote_identifier(schema)}.{quote_identifier(identifier)}"


class DDLGenerator:
    """
    Generates SQL DDL (Data Definition Language) statements.

    Column types come straight from the inferred SqlType. Every generated
    table is created only if absent and carries the audit column.
    """

    def __init__(self, audit_column: str = AUDIT_COLUMN):
        """
        Initialize DDL generator.

        Args:
            audit_column: Name of the insertion timestamp column appended to every table
        """
        self.audit_column = audit_column

    def generate_table_ddl(self, table: Table) -> str:
        """
        Generate CREATE TABLE DDL statement.

        Args:
            table: Inferred table definition

        Returns:
            Complete CREATE TABLE SQL statement
        """
        columns = self._generate_column_definitions(table)
        columns.append(
            f"    {quote_identifier(self.audit_column)} TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP")

        lines = [
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(table.name)} (",
            ",\n".join(columns),
            ");",
        ]
        ddl = "\n".join(lines)

        logger.debug(f"Generated DDL for {table.name}:\n{ddl}")
        return ddl

    def generate_schema_ddl(self, schema: FeedSchema) -> List[str]:
        """Generate CREATE TABLE statements for every table, in schema order."""
        return [self.generate_table_ddl(table) for table in schema]

    def _generate_column_definitions(self, table: Table) -> List[str]:
        """
        Generate column definitions, primary key first.

        The source columns keep their inferred order; a source column that
        collides with the audit column is left to the audit definition.
        """
        columns = []

        id_type = table.type_of(ID_COLUMN)
        if id_type is not None:
            columns.append(f"    {quote_identifier(ID_COLUMN)} {id_type.ddl} PRIMARY KEY")

        for column in table.columns:
            if column.name in (ID_COLUMN, self.audit_column):
                continue
            columns.append(f"    {quote_identifier(column.name)} {column.type.ddl}")

        return columns
