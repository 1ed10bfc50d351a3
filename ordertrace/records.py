"""
Log levels and the immutable log record passed to every sink
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Union

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class LogLevel(IntEnum):
    """Severity levels, ordered for threshold comparison"""

    TRACE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    CRITICAL = 5
    # Threshold only: disables a sink, never the level of a record
    NONE = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def stdlib_level(self) -> int:
        return _TO_STDLIB[self]

    @classmethod
    def parse(cls, value: Union[str, int, "LogLevel"]) -> "LogLevel":
        """
        Parse a level from its name, a stdlib alias or an int

        Args:
            value: "Information", "warning", "INFO", LogLevel.ERROR, 3, ...

        Returns:
            The matching LogLevel
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)
        key = str(value).strip().upper()
        key = _ALIASES.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None

    @classmethod
    def from_stdlib(cls, levelno: int) -> "LogLevel":
        """Map a stdlib logging level number to the nearest LogLevel"""
        if levelno >= logging.CRITICAL:
            return cls.CRITICAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFORMATION
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE


_ALIASES = {
    "INFO": "INFORMATION",
    "WARN": "WARNING",
    "FATAL": "CRITICAL",
}

_TO_STDLIB = {
    LogLevel.TRACE: TRACE,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFORMATION: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
    LogLevel.NONE: logging.CRITICAL + 10,
}


def admit(level: LogLevel, minimum: LogLevel) -> bool:
    """True when a record at `level` passes a sink threshold of `minimum`"""
    return level != LogLevel.NONE and minimum != LogLevel.NONE and level >= minimum


@dataclass(frozen=True)
class ErrorInfo:
    """Exception details captured at the call site"""

    message: str
    stack_trace: str = ""

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        message = str(exc) or type(exc).__name__
        stack_trace = "".join(traceback.format_tb(exc.__traceback__)).rstrip()
        return cls(message=message, stack_trace=stack_trace)


@dataclass(frozen=True)
class LogRecord:
    """One log event; sinks only read it"""

    level: LogLevel
    category: str
    message: str
    error: Optional[ErrorInfo] = None
    correlation_id: Optional[str] = None
    timestamp_utc: Optional[datetime] = None

    def __post_init__(self):
        ts = self.timestamp_utc
        if ts is None:
            ts = utcnow()
        elif ts.tzinfo is None:
            # Naive timestamps are taken as UTC
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        object.__setattr__(self, "timestamp_utc", ts)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
