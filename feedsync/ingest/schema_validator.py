"""
Detection of drift between an inferred table and its live counterpart.
"""

import logging

from feedsync.common.errors import InvalidArgumentError, SchemaMismatchError
from feedsync.common.metrics import schema_mismatches_total
from feedsync.ingest.ddl_generator import AUDIT_COLUMN
from feedsync.ingest.models import Table

logger = logging.getLogger(__name__)


class SchemaValidator:
    """
    Compares inferred column names with the live table's column names.

    Only the name sets are compared; order and types are ignored. The
    audit column is allowed in the database without appearing in the feed.
    """

    def __init__(self, database, audit_column: str = AUDIT_COLUMN):
        """
        Args:
            database: Collaborator exposing live_column_names(table_name)
            audit_column: Column tolerated in the database only
        """
        self.database = database
        self.audit_column = audit_column

    def assert_matches(self, table_name: str, table: Table) -> None:
        """
        Raise if the live table does not have exactly the inferred columns.

        Raises:
            InvalidArgumentError: If table_name is blank
            TableNotFoundError: If the table does not exist in the database
            SchemaMismatchError: If the column-name sets differ
        """
        if table_name is None or not table_name.strip():
            raise InvalidArgumentError("table_name must not be blank")

        expected = set(table.column_names)
        expected.discard(self.audit_column)

        actual = set(self.database.live_column_names(table_name))
        actual.discard(self.audit_column)

        if expected != actual:
            schema_mismatches_total.labels(table=table_name).inc()
            error = SchemaMismatchError(table_name, expected, actual)
            logger.error(str(error))
            raise error

        logger.debug(f"Schema of {table_name} matches feed ({len(expected)} columns)")
