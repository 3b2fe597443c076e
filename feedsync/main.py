# Command-line entry point

import argparse
import json
import logging
import sys
from typing import List, Optional

from prometheus_client import write_to_textfile
from sqlalchemy import create_engine

from feedsync.admin.maintenance import MaintenanceHandlers
from feedsync.catalog.database import FeedDatabase, get_engine
from feedsync.common.errors import FeedSyncError
from feedsync.common.logging_config import setup_logging
from feedsync.common.metrics import REGISTRY
from feedsync.config.settings import get_settings
from feedsync.document.reader import read_from_file, read_from_url
from feedsync.ingest.ddl_generator import DDLGenerator
from feedsync.ingest.schema_inference import SchemaInferenceEngine
from feedsync.ingest.synchronizer import Synchronizer, SyncMode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedsync",
        description="Mirror a product-catalog XML feed into relational tables.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", help="Path to a local XML feed")
    source.add_argument("--url", help="URL of a remote XML feed")

    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in SyncMode],
        help="upsert: create missing tables and insert-or-update rows; "
             "update: update rows of existing tables only",
    )
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--db-schema", help="Database schema holding the feed tables")
    parser.add_argument("--ddl-only", action="store_true",
                        help="Print CREATE TABLE statements and exit")
    parser.add_argument("--create-only", action="store_true",
                        help="Create or validate tables without writing rows")
    parser.add_argument("--drop-all", action="store_true",
                        help="Drop every table in the schema before anything else")
    parser.add_argument("--cascade", action="store_true",
                        help="Use CASCADE with --drop-all")
    parser.add_argument("--continue-on-error", action="store_true",
                        help="Record table failures and continue with the next table")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    return parser


def _open_database(args: argparse.Namespace) -> FeedDatabase:
    settings = get_settings()
    schema = args.db_schema if args.db_schema is not None else settings.db_schema
    if args.database_url:
        return FeedDatabase(create_engine(args.database_url, pool_pre_ping=True), schema=schema)
    return FeedDatabase(get_engine(), schema=schema)


def _write_metrics(path: Optional[str]) -> None:
    if not path:
        return
    try:
        write_to_textfile(path, REGISTRY)
    except OSError as e:
        logger.warning(f"Failed to write metrics to {path}: {e}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    setup_logging(args.log_level or settings.log_level, json_format=settings.log_json)

    feed_file = args.file or (None if args.url else settings.feed_file)
    feed_url = args.url or (None if args.file else settings.feed_url)
    mode = SyncMode(args.mode or settings.sync_mode)
    stop_on_error = settings.stop_on_error and not args.continue_on_error

    try:
        database = None
        if args.drop_all:
            database = _open_database(args)
            dropped = MaintenanceHandlers(database, default_schema=database.schema).drop_all_tables(
                cascade=args.cascade)
            print(f"✓ Dropped {len(dropped)} table(s)")

        if not feed_file and not feed_url:
            if not args.drop_all:
                print("No input given. Use --file=... or --url=...")
            return 0

        document = read_from_file(feed_file) if feed_file else read_from_url(feed_url)
        schema = SchemaInferenceEngine(detect_child_types=settings.detect_child_types).infer(document)

        if args.ddl_only:
            for ddl in DDLGenerator().generate_schema_ddl(schema):
                print(ddl)
                print()
            return 0

        database = database or _open_database(args)
        synchronizer = Synchronizer(database, mode=mode)

        if args.create_only:
            created = synchronizer.create_tables(schema)
            print(f"✓ Tables ready ({len(created)} created): {schema.table_names}")
            return 0

        report = synchronizer.sync(document, schema=schema, stop_on_error=stop_on_error)
        print(json.dumps(report.to_dict(), indent=2))
        return 0 if report.succeeded else 1

    except FeedSyncError as e:
        logger.error(f"Synchronization failed: {e}")
        print(f"✗ {e}", file=sys.stderr)
        return 1
    finally:
        _write_metrics(settings.metrics_file)


if __name__ == "__main__":
    sys.exit(main())
