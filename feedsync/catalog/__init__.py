"""Database access."""

from feedsync.catalog.database import FeedDatabase, check_database_connection, get_engine

__all__ = ["FeedDatabase", "check_database_connection", "get_engine"]
