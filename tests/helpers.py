"""Test doubles for sinks."""

import threading
from datetime import datetime, timezone
from typing import List, Optional

from ordertrace.records import ErrorInfo, LogLevel, LogRecord
from ordertrace.sinks.base import LogSink


class RecordingSink(LogSink):
    """Keeps every record it receives."""

    def __init__(self, minimum_level: LogLevel = LogLevel.TRACE):
        super().__init__(minimum_level)
        self.records: List[LogRecord] = []
        self.closed = False
        self._lock = threading.Lock()

    def write(self, record: LogRecord) -> None:
        with self._lock:
            self.records.append(record)

    def close(self) -> None:
        self.closed = True


class FailingSink(LogSink):
    """Raises on every write."""

    def __init__(self, minimum_level: LogLevel = LogLevel.TRACE):
        super().__init__(minimum_level)
        self.attempts = 0

    def write(self, record: LogRecord) -> None:
        self.attempts += 1
        raise RuntimeError("sink is down")


def make_record(
    level: LogLevel = LogLevel.INFORMATION,
    category: str = "OrderService",
    message: str = "hello",
    error: Optional[ErrorInfo] = None,
    correlation_id: Optional[str] = None,
    timestamp_utc: Optional[datetime] = None,
) -> LogRecord:
    return LogRecord(
        level=level,
        category=category,
        message=message,
        error=error,
        correlation_id=correlation_id,
        timestamp_utc=timestamp_utc or datetime(2025, 12, 10, 8, 30, 15, 123000, tzinfo=timezone.utc),
    )
