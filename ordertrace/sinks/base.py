from abc import ABC, abstractmethod

from ordertrace.records import LogLevel, LogRecord, admit


class LogSink(ABC):
    """A destination for log records with its own minimum level"""

    def __init__(self, minimum_level: LogLevel = LogLevel.INFORMATION):
        self.minimum_level = LogLevel.parse(minimum_level)
        # Contained write failures, for diagnostics
        self.failures = 0

    def is_enabled(self, level: LogLevel) -> bool:
        return admit(level, self.minimum_level)

    @abstractmethod
    def write(self, record: LogRecord) -> None:
        """Persist one record. Must not raise."""

    def close(self) -> None:
        """Release resources held by the sink"""

    def __repr__(self):
        return f"{type(self).__name__}(minimum_level={self.minimum_level.label})"
