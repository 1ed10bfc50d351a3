"""
Text file sink with optional daily rolling
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Union

from ordertrace.records import LogLevel, LogRecord
from ordertrace.sinks.base import LogSink

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATH = "Logs/order-api-log.txt"

# Shared by every file sink so appends from all categories never interleave
_file_lock = threading.Lock()


def _single_line(text: str) -> str:
    return text.replace("\r\n", "\\n").replace("\n", "\\n").replace("\r", "\\n")


def daily_file_path(base_path: Union[str, Path], when: datetime) -> Path:
    """
    Insert the UTC date before the file extension

    Example:
        Logs/order-api-log.txt on 2025-12-10 -> Logs/order-api-log-2025-12-10.txt
    """
    base_path = Path(base_path)
    return base_path.with_name(f"{base_path.stem}-{when:%Y-%m-%d}{base_path.suffix}")


class RollingFileSink(LogSink):
    """Appends one formatted line per record to a text file"""

    def __init__(
        self,
        file_path: Union[str, Path] = DEFAULT_FILE_PATH,
        minimum_level: LogLevel = LogLevel.INFORMATION,
        use_daily_rolling_files: bool = True,
    ):
        super().__init__(minimum_level)
        self.file_path = Path(file_path)
        self.use_daily_rolling_files = use_daily_rolling_files

    def resolve_path(self, when: datetime) -> Path:
        """Target file for a record written at `when` (UTC)"""
        if self.use_daily_rolling_files:
            return daily_file_path(self.file_path, when)
        return self.file_path

    @staticmethod
    def format_line(record: LogRecord) -> str:
        ts = record.timestamp_utc
        parts = [
            f"{ts:%Y-%m-%d %H:%M:%S}.{ts.microsecond // 1000:03d}",
            f" [{record.level.name}] ",
            record.category,
        ]

        if record.correlation_id:
            parts.append(f" [CorrelationId: {record.correlation_id}]")

        parts.append(" - ")
        parts.append(_single_line(record.message))

        if record.error is not None:
            parts.append(f" | Exception: {_single_line(record.error.message)}")
            parts.append(f" | StackTrace: {_single_line(record.error.stack_trace)}")

        parts.append("\n")
        return "".join(parts)

    def write(self, record: LogRecord) -> None:
        line = self.format_line(record)

        try:
            path = self.resolve_path(record.timestamp_utc)
            path.parent.mkdir(parents=True, exist_ok=True)

            with _file_lock:
                with open(path, "a", encoding="utf-8", errors="backslashreplace") as f:
                    f.write(line)
        except (OSError, ValueError):
            self.failures += 1
            logger.debug(f"Failed to append log line to {self.file_path}", exc_info=True)
