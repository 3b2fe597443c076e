"""
Database connection and introspection.

Provides the database engine and FeedDatabase, the collaborator through
which the synchronizer creates tables, inspects live schemas and writes rows.
"""

import logging
from functools import lru_cache
from typing import Any, List, Optional, Sequence, Set

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from feedsync.common.errors import InvalidArgumentError, StoreError, TableNotFoundError
from feedsync.common.metrics import track_db_statement
from feedsync.config.settings import get_settings
from feedsync.ingest.ddl_generator import quote_qualified_identifier
from feedsync.ingest.statements import PARAMSTYLE_PLACEHOLDERS, StatementBuilder

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> Engine:
    """
    Create the application engine from settings.

    pool_pre_ping: Verify connections before use (prevents stale connection errors)
    pool_recycle: Recycle connections after specified seconds
    """
    settings = get_settings()
    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.debug,
        future=True,
    )


def check_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is successful, False otherwise
    """
    engine = engine or get_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


class FeedDatabase:
    """
    Relational collaborator used by schema validation and synchronization.

    Every call checks a connection out of the engine's pool and returns it
    when done. Writes run in their own transaction and are committed
    immediately.
    """

    def __init__(self, engine: Engine, schema: Optional[str] = "public"):
        """
        Args:
            engine: SQLAlchemy engine
            schema: Database schema holding the feed tables (None for the default)
        """
        self.engine = engine
        self.schema = schema

    @property
    def placeholder(self) -> str:
        paramstyle = self.engine.dialect.paramstyle
        if paramstyle not in PARAMSTYLE_PLACEHOLDERS:
            raise StoreError(f"Unsupported DB-API paramstyle: {paramstyle}")
        return PARAMSTYLE_PLACEHOLDERS[paramstyle]

    def statement_builder(self) -> StatementBuilder:
        return StatementBuilder(self.placeholder)

    def table_exists(self, table_name: str) -> bool:
        try:
            return inspect(self.engine).has_table(table_name, schema=self.schema)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to check whether table exists: {table_name}") from e

    def live_column_names(self, table_name: str) -> Set[str]:
        """
        Read the column names of a live table.

        Raises:
            TableNotFoundError: If the table does not exist or has no columns
            StoreError: If introspection fails
        """
        try:
            columns = inspect(self.engine).get_columns(table_name, schema=self.schema)
        except NoSuchTableError:
            columns = []
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read table structure: {table_name}") from e

        names = {column["name"] for column in columns}
        if not names:
            raise TableNotFoundError(
                table_name, f"Table not found in database or has no columns: {table_name}")
        return names

    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        """
        List tables in dependency order (referenced tables first).

        Args:
            schema: Schema to list (defaults to this database's schema)
        """
        schema = self.schema if schema is None else schema
        try:
            sorted_tables = inspect(self.engine).get_sorted_table_and_fkc_names(schema=schema)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list tables in schema: {schema}") from e
        return [name for name, _fks in sorted_tables if name is not None]

    @track_db_statement("ddl")
    def execute(self, sql: str) -> None:
        """Execute a statement without parameters (DDL)."""
        logger.debug(f"Executing: {sql}")
        try:
            with self.engine.begin() as conn:
                conn.execution_options(no_parameters=True).exec_driver_sql(sql)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to execute statement: {e}") from e

    @track_db_statement("write")
    def execute_write(self, sql: str, params: Sequence[Any] = ()) -> int:
        """
        Execute a parameterized write statement.

        Returns:
            Number of affected rows as reported by the driver
        """
        logger.debug(f"Executing: {sql} params={list(params)}")
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(sql, tuple(params))
                return result.rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to execute write: {e}") from e

    def drop_table(self, table_name: str, cascade: bool = False, schema: Optional[str] = None) -> None:
        """DROP TABLE IF EXISTS "schema"."table" [CASCADE]"""
        if table_name is None or not table_name.strip():
            raise InvalidArgumentError("table_name must not be blank")
        schema = self.schema if schema is None else schema
        sql = "DROP TABLE IF EXISTS " + quote_qualified_identifier(schema, table_name)
        if cascade:
            sql += " CASCADE"
        self.execute(sql)
