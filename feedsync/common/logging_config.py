"""
Structured JSON logging for synchronization runs.

Every record emitted while a run is active carries the run's ID, so the
table and row messages of one sync can be pulled out of aggregated logs.
Keyword fields passed to the structured logger or PerformanceTracker land
as top-level JSON keys.
"""

import json
import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

# ID of the synchronization run in progress
run_id_ctx: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

# Libraries that log every request or statement at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def _with_run_id(fields: Dict[str, Any]) -> Dict[str, Any]:
    run_id = run_id_ctx.get()
    if run_id:
        fields["run_id"] = run_id
    return fields


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    One JSON object per line. Values that are not JSON-native (Decimal,
    dates, exceptions) are rendered with str().
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = _with_run_id({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        })

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(getattr(record, "extra_fields", {}))
        return json.dumps(log_data, default=str)


class RunLogger:
    """
    Thin wrapper turning keyword arguments into structured fields.

    Usage:
        structured_logger.info("Table synchronized", table="offers", rows_written=12)
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, msg: str, fields: Dict[str, Any]) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, msg, extra={"extra_fields": _with_run_id(fields)}, stacklevel=3)

    def debug(self, msg: str, **fields):
        self._log(logging.DEBUG, msg, fields)

    def info(self, msg: str, **fields):
        self._log(logging.INFO, msg, fields)

    def warning(self, msg: str, **fields):
        self._log(logging.WARNING, msg, fields)

    def error(self, msg: str, **fields):
        self._log(logging.ERROR, msg, fields)


class PerformanceTracker:
    """
    Context manager timing one operation.

    The elapsed time is kept on ``duration_seconds`` after exit so callers
    can feed it to a histogram. Exceptions are logged and propagated.

    Usage:
        with PerformanceTracker("sync_table", logger, table="offers") as tracker:
            ...
        sync_table_duration_seconds.observe(tracker.duration_seconds)
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        log_level: int = logging.INFO,
        **extra_fields,
    ):
        """
        Args:
            operation: Operation name
            logger: Logger receiving the start and completion records
            log_level: Level of the completion record
            **extra_fields: Additional structured fields
        """
        self.operation = operation
        self.logger = logger
        self.log_level = log_level
        self.extra_fields = extra_fields
        self.duration_seconds: Optional[float] = None
        self._started: Optional[float] = None

    def _fields(self, **fields) -> Dict[str, Any]:
        return _with_run_id({"operation": self.operation, **self.extra_fields, **fields})

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.debug(f"{self.operation} started", extra={"extra_fields": self._fields()})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_seconds = time.perf_counter() - self._started
        duration_ms = round(self.duration_seconds * 1000, 2)

        if exc_type is None:
            self.logger.log(
                self.log_level,
                f"{self.operation} finished in {duration_ms} ms",
                extra={"extra_fields": self._fields(duration_ms=duration_ms)},
            )
        else:
            self.logger.error(
                f"{self.operation} failed after {duration_ms} ms: {exc_val}",
                extra={"extra_fields": self._fields(
                    duration_ms=duration_ms, error_type=exc_type.__name__)},
            )
        return False


def setup_logging(log_level: str = "INFO", json_format: bool = True, stream=None):
    """
    Configure the root logger with a single console handler.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: StructuredFormatter if True, plain text otherwise
        stream: Output stream (stderr by default, keeping stdout for reports)
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(level)
    if json_format:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def run_context(run_id: Optional[str] = None) -> Iterator[str]:
    """
    Set the run ID for the duration of a block.

    The previous value is restored on exit, so records logged after a
    run never carry its ID.
    """
    token = run_id_ctx.set(run_id or str(uuid.uuid4()))
    try:
        yield run_id_ctx.get()
    finally:
        run_id_ctx.reset(token)


def get_run_id() -> Optional[str]:
    return run_id_ctx.get()


def get_structured_logger(name: str) -> RunLogger:
    return RunLogger(logging.getLogger(name))
