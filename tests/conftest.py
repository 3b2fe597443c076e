# Test configuration

import os
import sqlite3
import sys
from datetime import date, datetime
from decimal import Decimal

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from feedsync.common.errors import TableNotFoundError  # noqa: E402
from feedsync.ingest.statements import StatementBuilder  # noqa: E402

# sqlite3 has no adapter for Decimal, and the default date adapters are deprecated
sqlite3.register_adapter(Decimal, str)
sqlite3.register_adapter(date, lambda value: value.isoformat())
sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))


SAMPLE_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<yml_catalog date="2024-03-01 10:00">
  <shop>
    <name>Demo Shop</name>
    <company>Demo LLC</company>
    <currencies>
      <currency id="USD" rate="92.5"/>
      <currency id="RUR" rate="1"/>
    </currencies>
    <categories>
      <category id="1">Clothing</category>
      <category id="2" parentId="1">T-Shirts</category>
    </categories>
    <offers>
      <offer id="101" available="true">
        <name>Basic tee</name>
        <price>19.99</price>
        <currencyId>RUR</currencyId>
        <categoryId>2</categoryId>
        <param name="Color">Red</param>
        <param name="Size">Large</param>
      </offer>
      <offer id="102" available="false">
        <name>Striped tee</name>
        <price>25</price>
        <currencyId>RUR</currencyId>
        <categoryId>2</categoryId>
        <param name="Color">Blue</param>
      </offer>
    </offers>
  </shop>
</yml_catalog>
"""


class FakeDatabase:
    """In-memory stand-in for FeedDatabase that records every statement."""

    def __init__(self, tables=None, placeholder="?", rowcount=1):
        self.tables = {name: set(columns) for name, columns in (tables or {}).items()}
        self.placeholder = placeholder
        self.rowcount = rowcount
        self.schema = None
        self.executed = []
        self.writes = []
        self.dropped = []

    def statement_builder(self):
        return StatementBuilder(self.placeholder)

    def table_exists(self, table_name):
        return table_name in self.tables

    def live_column_names(self, table_name):
        columns = self.tables.get(table_name)
        if not columns:
            raise TableNotFoundError(table_name)
        return set(columns)

    def execute(self, sql):
        self.executed.append(sql)

    def execute_write(self, sql, params=()):
        self.writes.append((sql, tuple(params)))
        return self.rowcount

    def list_tables(self, schema=None):
        return list(self.tables)

    def drop_table(self, table_name, cascade=False, schema=None):
        self.dropped.append((schema, table_name, cascade))
        self.tables.pop(table_name, None)


@pytest.fixture
def sample_feed_bytes():
    return SAMPLE_FEED


@pytest.fixture
def feed_document():
    """The sample feed parsed into a FeedDocument."""
    from feedsync.document.reader import parse_bytes
    return parse_bytes(SAMPLE_FEED, source="sample.xml", root_section="shop")


@pytest.fixture
def make_document():
    """Factory parsing an XML string into a FeedDocument."""
    from feedsync.document.reader import parse_bytes

    def _make(xml: str, root_section: str = "shop"):
        return parse_bytes(xml.encode("utf-8"), source="test.xml", root_section=root_section)

    return _make


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def fake_db_factory():
    return FakeDatabase


@pytest.fixture
def sqlite_database(tmp_path):
    """FeedDatabase backed by a throwaway SQLite file."""
    from sqlalchemy import create_engine
    from feedsync.catalog.database import FeedDatabase

    engine = create_engine(f"sqlite:///{tmp_path / 'feed.db'}")
    yield FeedDatabase(engine, schema=None)
    engine.dispose()


@pytest.fixture
def test_settings():
    """Override settings for testing"""
    from feedsync.config.settings import Settings
    return Settings(
        database_url="sqlite:///:memory:",
        db_schema=None,
        root_section="shop",
        log_json=False,
    )
