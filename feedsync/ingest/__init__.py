"""
Ingest module for catalog feeds.

Provides type detection, schema inference, DDL generation, drift
detection, row extraction, value coercion and synchronization.
"""

from feedsync.ingest.models import (
    Column,
    FeedSchema,
    SqlType,
    Table,
)
from feedsync.ingest.type_detector import detect_sql_type
from feedsync.ingest.schema_inference import SchemaInferenceEngine
from feedsync.ingest.ddl_generator import DDLGenerator, quote_identifier
from feedsync.ingest.schema_validator import SchemaValidator
from feedsync.ingest.row_extractor import RowExtractor
from feedsync.ingest.value_coercer import ValueCoercer
from feedsync.ingest.statements import StatementBuilder, WriteStatement
from feedsync.ingest.synchronizer import (
    Synchronizer,
    SyncMode,
    SyncReport,
    TableSyncResult,
)

__all__ = [  # ruff: noqa: RUF022
    # Data model
    "Column",
    "FeedSchema",
    "SqlType",
    "Table",
    # Schema
    "detect_sql_type",
    "SchemaInferenceEngine",
    "DDLGenerator",
    "quote_identifier",
    "SchemaValidator",
    # Rows
    "RowExtractor",
    "ValueCoercer",
    "StatementBuilder",
    "WriteStatement",
    # Synchronization
    "Synchronizer",
    "SyncMode",
    "SyncReport",
    "TableSyncResult",
]
