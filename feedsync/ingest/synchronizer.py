"""
Feed-to-database synchronization.

Coordinates the whole pipeline for one feed document: schema inference,
table creation or drift detection, row extraction, value coercion and one
write statement per row.

Write boundary and failure policy: every row is written in its own
transaction. The first failure inside a table (missing id, coercion error,
store error) stops that table; rows written before it stay committed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from feedsync.common.errors import FeedSyncError, InvalidArgumentError, TableNotFoundError
from feedsync.common.logging_config import PerformanceTracker, get_structured_logger, run_context
from feedsync.common.metrics import (
    sync_rows_total,
    sync_table_duration_seconds,
    sync_tables_total,
    tables_created_total,
)
from feedsync.document.tree import FeedDocument
from feedsync.ingest.ddl_generator import ID_COLUMN, DDLGenerator
from feedsync.ingest.models import FeedSchema, Row, Table
from feedsync.ingest.row_extractor import RowExtractor
from feedsync.ingest.schema_inference import SchemaInferenceEngine
from feedsync.ingest.schema_validator import SchemaValidator
from feedsync.ingest.statements import StatementBuilder
from feedsync.ingest.value_coercer import ValueCoercer

logger = logging.getLogger(__name__)
structured_logger = get_structured_logger(__name__)


class SyncMode(str, Enum):
    """How rows reach the database."""
    UPSERT = "upsert"  # create missing tables, INSERT ... ON CONFLICT
    UPDATE = "update"  # tables must exist, plain UPDATE by id


@dataclass
class TableSyncResult:
    """Outcome of synchronizing one table."""
    table_name: str
    mode: SyncMode
    created: bool = False
    rows_total: int = 0
    rows_written: int = 0
    rows_skipped: int = 0
    rows_unmatched: int = 0
    error: Optional[FeedSyncError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "table": self.table_name,
            "mode": self.mode.value,
            "created": self.created,
            "rows_total": self.rows_total,
            "rows_written": self.rows_written,
            "rows_skipped": self.rows_skipped,
            "rows_unmatched": self.rows_unmatched,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class SyncReport:
    """Outcome of one synchronization run."""
    run_id: str
    mode: SyncMode
    tables: List[TableSyncResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(result.succeeded for result in self.tables)

    @property
    def failed_tables(self) -> List[str]:
        return [result.table_name for result in self.tables if not result.succeeded]

    @property
    def rows_written(self) -> int:
        return sum(result.rows_written for result in self.tables)

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "mode": self.mode.value,
            "succeeded": self.succeeded,
            "rows_written": self.rows_written,
            "tables": [result.to_dict() for result in self.tables],
        }


class Synchronizer:
    """
    Mirrors feed sections into database tables.

    In UPSERT mode missing tables are created from the inferred DDL and
    existing ones are validated; rows are inserted or updated by id. In
    UPDATE mode every table must already exist and match; rows only
    update existing records.
    """

    def __init__(
        self,
        database,
        mode: SyncMode = SyncMode.UPSERT,
        inference: Optional[SchemaInferenceEngine] = None,
        extractor: Optional[RowExtractor] = None,
        coercer: Optional[ValueCoercer] = None,
        ddl_generator: Optional[DDLGenerator] = None,
        validator: Optional[SchemaValidator] = None,
    ):
        """
        Args:
            database: Collaborator (see FeedDatabase)
            mode: Operating mode
        """
        self.database = database
        self.mode = SyncMode(mode)
        self.inference = inference or SchemaInferenceEngine()
        self.extractor = extractor or RowExtractor()
        self.coercer = coercer or ValueCoercer()
        self.ddl_generator = ddl_generator or DDLGenerator()
        self.validator = validator or SchemaValidator(database)
        self.statements: StatementBuilder = database.statement_builder()

    # ==================== Runs ====================

    def sync(
        self,
        document: FeedDocument,
        schema: Optional[FeedSchema] = None,
        stop_on_error: bool = True,
    ) -> SyncReport:
        """
        Synchronize every table of the document, in schema order.

        Args:
            document: Parsed feed
            schema: Inference result for this same document (inferred when omitted)
            stop_on_error: Raise the first table failure instead of recording it

        Returns:
            SyncReport with one result per table
        """
        if document is None:
            raise InvalidArgumentError("document must not be None")

        with run_context() as run_id:
            if schema is None:
                schema = self.inference.infer(document)

            report = SyncReport(run_id=run_id, mode=self.mode)
            structured_logger.info(
                "Starting feed synchronization",
                mode=self.mode.value,
                tables=schema.table_names,
                source=document.source,
            )

            for table in schema:
                result = self._run_table(document, table)
                report.tables.append(result)
                if result.error is not None and stop_on_error:
                    raise result.error

            structured_logger.info(
                "Feed synchronization finished",
                mode=self.mode.value,
                rows_written=report.rows_written,
                failed_tables=report.failed_tables,
            )
            return report

    def sync_table(self, document: FeedDocument, schema: FeedSchema, table_name: str) -> TableSyncResult:
        """
        Synchronize a single table.

        Raises:
            InvalidArgumentError: Blank table name, no id column, or a row without id
            TableNotFoundError: Table unknown to the schema, or absent in UPDATE mode
            SchemaMismatchError: Live table differs from the feed
            CoercionError: A value does not fit its column type
            StoreError: The database failed
        """
        if table_name is None or not table_name.strip():
            raise InvalidArgumentError("table_name must not be blank")

        result = self._run_table(document, schema.table(table_name))
        if result.error is not None:
            raise result.error
        return result

    # ==================== Tables ====================

    def create_tables(self, schema: FeedSchema) -> List[str]:
        """
        Create missing tables and validate existing ones, without writing rows.

        Returns:
            Names of the tables that were created
        """
        return [table.name for table in schema if self.ensure_table(table)]

    def ensure_table(self, table: Table) -> bool:
        """
        Create the table if it does not exist, otherwise assert its structure.

        Returns:
            True if the table was created
        """
        self._require_id_column(table)

        if self.database.table_exists(table.name):
            self.validator.assert_matches(table.name, table)
            return False

        self.database.execute(self.ddl_generator.generate_table_ddl(table))
        tables_created_total.inc()
        logger.info(f"Created table {table.name}")
        return True

    def _require_id_column(self, table: Table) -> None:
        if not table.columns:
            raise TableNotFoundError(table.name, f"Feed section has no columns: {table.name}")
        if not table.has_column(ID_COLUMN):
            raise InvalidArgumentError(
                f"Feed definition of table {table.name} has no required column {ID_COLUMN}")

    def _run_table(self, document: FeedDocument, table: Table) -> TableSyncResult:
        result = TableSyncResult(table_name=table.name, mode=self.mode)

        try:
            with PerformanceTracker(
                "sync_table", logger, table=table.name, mode=self.mode.value
            ) as tracker:
                if self.mode == SyncMode.UPSERT:
                    result.created = self.ensure_table(table)
                else:
                    self._require_id_column(table)
                    self.validator.assert_matches(table.name, table)

                rows = self.extractor.extract_rows(document, table.name)
                result.rows_total = len(rows)

                for index, row in enumerate(rows):
                    try:
                        self._write_row(table, index, row, result)
                    except FeedSyncError:
                        sync_rows_total.labels(
                            table=table.name, mode=self.mode.value, status="failed").inc()
                        raise
        except FeedSyncError as e:
            result.error = e
            sync_tables_total.labels(mode=self.mode.value, status="failure").inc()
            return result

        sync_table_duration_seconds.labels(mode=self.mode.value).observe(tracker.duration_seconds)
        sync_tables_total.labels(mode=self.mode.value, status="success").inc()
        structured_logger.info(
            "Table synchronized",
            table=table.name,
            created=result.created,
            rows_written=result.rows_written,
            rows_skipped=result.rows_skipped,
            rows_unmatched=result.rows_unmatched,
        )
        return result

    # ==================== Rows ====================

    def _write_row(self, table: Table, index: int, row: Row, result: TableSyncResult) -> None:
        raw_id = row.get(ID_COLUMN)
        if raw_id is None or not str(raw_id).strip():
            raise InvalidArgumentError(
                f"Row {index} of table {table.name} has no required attribute {ID_COLUMN}")

        id_value = self.coercer.coerce(table.name, ID_COLUMN, table.type_of(ID_COLUMN), raw_id)

        # Only columns known to the table are written, in table order.
        # The audit column is filled by the database, never by the feed.
        excluded = (ID_COLUMN, self.ddl_generator.audit_column)
        columns = [c for c in table.column_names if c not in excluded and c in row]
        values = self.coercer.coerce_row(table, row, columns)

        if self.mode == SyncMode.UPSERT:
            statement = self.statements.upsert(table.name, id_value, values)
        else:
            if not values:
                result.rows_skipped += 1
                sync_rows_total.labels(table=table.name, mode=self.mode.value, status="skipped").inc()
                logger.debug(f"Row {index} of {table.name} has nothing to update; skipped")
                return
            statement = self.statements.update(table.name, id_value, values)

        affected = self.database.execute_write(statement.sql, statement.params)
        if self.mode == SyncMode.UPDATE and affected == 0:
            result.rows_unmatched += 1
            sync_rows_total.labels(table=table.name, mode=self.mode.value, status="unmatched").inc()
            logger.debug(f"No row with id={id_value!r} in {table.name}")
            return

        result.rows_written += 1
        sync_rows_total.labels(table=table.name, mode=self.mode.value, status="written").inc()
