"""
Database sink: persists records on background worker threads
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ordertrace.database import LogEntry
from ordertrace.records import LogLevel, LogRecord
from ordertrace.sinks.base import LogSink

logger = logging.getLogger(__name__)


class DatabaseSink(LogSink):
    """
    Fire-and-forget persistence of log records

    write() only submits the insert to a thread pool and returns. Each insert
    runs in its own Session, so it never shares a transaction with the request
    that produced the record. Failed inserts are dropped, never retried.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        minimum_level: LogLevel = LogLevel.WARNING,
        max_workers: int = 2,
    ):
        super().__init__(minimum_level)
        self.session_factory = session_factory
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ordertrace-db-log"
        )
        self._failures_lock = threading.Lock()
        self._closed = False

    def write(self, record: LogRecord) -> Optional[Future]:
        """
        Queue one record for insertion

        Returns:
            The pending Future, or None when the sink no longer accepts work
        """
        if self._closed:
            self._count_failure()
            return None
        try:
            return self.executor.submit(self._persist, record)
        except RuntimeError:
            # Executor shut down between the check and the submit
            self._count_failure()
            return None

    def _persist(self, record: LogRecord) -> None:
        try:
            with self.session_factory() as session:
                session.add(LogEntry.from_record(record))
                session.commit()
        except Exception:
            self._count_failure()
            logger.debug("Failed to persist log record", exc_info=True)

    def _count_failure(self) -> None:
        with self._failures_lock:
            self.failures += 1

    def close(self, wait: bool = True) -> None:
        """Stop accepting records; by default wait for queued inserts to finish"""
        self._closed = True
        self.executor.shutdown(wait=wait)
