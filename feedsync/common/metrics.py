"""
Prometheus metrics for monitoring and observability.

Provides counters and histograms for tracking:
- Table and row synchronization outcomes
- Schema drift detections
- Database statement latency
"""

import time
from typing import Callable
from functools import wraps
from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CollectorRegistry,
)

# Create a global registry
REGISTRY = CollectorRegistry()

# ========== Counters ==========

# Tables synchronized
sync_tables_total = Counter(
    "sync_tables_total",
    "Total number of table synchronizations",
    ["mode", "status"],  # upsert/update, success/failure
    registry=REGISTRY,
)

# Rows written or skipped
sync_rows_total = Counter(
    "sync_rows_total",
    "Total number of feed rows processed",
    ["table", "mode", "status"],  # written/skipped/unmatched/failed
    registry=REGISTRY,
)

# Schema drift
schema_mismatches_total = Counter(
    "schema_mismatches_total",
    "Total number of live tables found to differ from the feed",
    ["table"],
    registry=REGISTRY,
)

# Tables created from inferred DDL
tables_created_total = Counter(
    "tables_created_total",
    "Total number of tables created from the feed",
    registry=REGISTRY,
)

# ========== Histograms ==========

# Table synchronization duration
sync_table_duration_seconds = Histogram(
    "sync_table_duration_seconds",
    "Time to synchronize one table",
    ["mode"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0),
    registry=REGISTRY,
)

# Database statement duration
db_statement_duration_seconds = Histogram(
    "db_statement_duration_seconds",
    "Database statement execution time",
    ["operation"],  # ddl/write
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_db_statement(operation: str):
    """
    Decorator to track database statement duration.

    Args:
        operation: Type of statement (ddl/write)
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                duration = time.time() - start_time
                db_statement_duration_seconds.labels(
                    operation=operation).observe(duration)

        return wrapper
    return decorator


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics as bytes
    """
    return generate_latest(REGISTRY)
