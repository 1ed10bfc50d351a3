"""
Console and debug sinks built on stdlib logging handlers
"""

import logging
import sys
import time
from datetime import datetime, timezone

from pythonjsonlogger.json import JsonFormatter

from ordertrace.records import LogLevel, LogRecord
from ordertrace.sinks.base import LogSink

logger = logging.getLogger(__name__)

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"


class RecordJsonFormatter(JsonFormatter):
    """JSON formatter exposing the log record fields"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        # Timestamp of the original log call, not of formatting
        log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", None)


class _SinkStreamHandler(logging.StreamHandler):
    """StreamHandler that lets emit failures reach the owning sink"""

    def handleError(self, record):
        # emit() calls this from inside its except block
        raise


def to_stdlib_record(record: LogRecord) -> logging.LogRecord:
    """Convert a LogRecord into a stdlib logging.LogRecord for formatting"""
    created = record.timestamp_utc.timestamp()
    return logging.makeLogRecord({
        "name": record.category,
        "levelno": record.level.stdlib_level,
        "levelname": record.level.name,
        "msg": record.message,
        "args": None,
        "created": created,
        "msecs": (created - int(created)) * 1000,
        "correlation_id": record.correlation_id or "-",
        "exception_message": record.error.message if record.error else None,
        "exception_stack_trace": record.error.stack_trace if record.error else None,
    })


class StreamSink(LogSink):
    """Formats records with a stdlib formatter and writes them to a stream"""

    def __init__(self, formatter: logging.Formatter, stream=None,
                 minimum_level: LogLevel = LogLevel.INFORMATION):
        super().__init__(minimum_level)
        self.handler = _SinkStreamHandler(stream)
        self.handler.setFormatter(formatter)

    def prepare(self, record: LogRecord) -> logging.LogRecord:
        return to_stdlib_record(record)

    def write(self, record: LogRecord) -> None:
        try:
            self.handler.handle(self.prepare(record))
        except Exception:
            self.failures += 1
            logger.debug(f"{type(self).__name__} failed to write record", exc_info=True)

    def close(self) -> None:
        self.handler.close()


class ConsoleSink(StreamSink):
    """Human-readable lines on stdout"""

    def __init__(self, minimum_level: LogLevel = LogLevel.INFORMATION, stream=None):
        formatter = logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT)
        formatter.converter = time.gmtime
        super().__init__(formatter, sys.stdout if stream is None else stream, minimum_level)

    def prepare(self, record: LogRecord) -> logging.LogRecord:
        std_record = to_stdlib_record(record)
        if record.error is not None:
            std_record.exc_text = f"Exception: {record.error.message}\n{record.error.stack_trace}".rstrip()
        return std_record


class DebugSink(StreamSink):
    """JSON lines on stderr, for local debugging and log shippers"""

    def __init__(self, minimum_level: LogLevel = LogLevel.DEBUG, stream=None):
        formatter = RecordJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        super().__init__(formatter, sys.stderr if stream is None else stream, minimum_level)
