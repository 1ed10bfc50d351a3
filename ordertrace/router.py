"""
Fan-out of log calls to the configured sinks
"""

import logging
import sys
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ordertrace.correlation import CorrelationContext, get_correlation_id
from ordertrace.records import ErrorInfo, LogLevel, LogRecord, utcnow
from ordertrace.sinks.base import LogSink

logger = logging.getLogger(__name__)

MessageBuilder = Union[str, Callable[[], str]]
ErrorLike = Union[BaseException, ErrorInfo, None]


def _to_error_info(error: ErrorLike) -> Optional[ErrorInfo]:
    if error is None or isinstance(error, ErrorInfo):
        return error
    if isinstance(error, BaseException):
        return ErrorInfo.from_exception(error)
    raise TypeError(f"error must be an exception or ErrorInfo, got {type(error).__name__}")


class LoggerRouter:
    """
    Routes log calls to every sink whose minimum level admits them

    The sink list is fixed at construction. Build one router at startup and
    pass it to the components that log.
    """

    def __init__(self, sinks: Iterable[LogSink], clock: Callable = utcnow):
        self.sinks: Sequence[LogSink] = tuple(sinks)
        self._clock = clock
        self._failed_lock = threading.Lock()
        self.failed_writes = 0

    def is_enabled(self, level: LogLevel) -> bool:
        level = LogLevel.parse(level)
        return any(sink.is_enabled(level) for sink in self.sinks)

    def log(
        self,
        level: LogLevel,
        category: str,
        message: MessageBuilder,
        error: ErrorLike = None,
        context: Optional[CorrelationContext] = None,
    ) -> Optional[LogRecord]:
        """
        Build one record and hand it to every admitting sink

        Args:
            level: Severity of the event
            category: Name of the emitting component
            message: Rendered text, or a zero-argument callable producing it.
                The callable is not evaluated when no sink admits `level`.
            error: Exception (or ErrorInfo) associated with the event
            context: Correlation context; the active request context when omitted

        Returns:
            The dispatched record, or None when the call was filtered out

        Raises:
            TypeError: message is neither a string nor a callable, or error is neither an exception nor ErrorInfo
            ValueError: category is blank
        """
        if message is None or not (isinstance(message, str) or callable(message)):
            raise TypeError("message must be a string or a zero-argument callable")
        if not isinstance(category, str) or not category.strip():
            raise ValueError("category must be a non-empty string")
        if error is not None and not isinstance(error, (BaseException, ErrorInfo)):
            raise TypeError(f"error must be an exception or ErrorInfo, got {type(error).__name__}")

        level = LogLevel.parse(level)
        targets: List[LogSink] = [sink for sink in self.sinks if sink.is_enabled(level)]
        if not targets:
            return None

        text = message() if callable(message) else message
        if not isinstance(text, str):
            raise TypeError(f"message builder returned {type(text).__name__}, expected str")

        error_info = _to_error_info(error)
        if not text.strip() and error_info is None:
            return None

        record = LogRecord(
            level=level,
            category=category,
            message=text,
            error=error_info,
            correlation_id=get_correlation_id(context),
            timestamp_utc=self._clock(),
        )

        for sink in targets:
            try:
                sink.write(record)
            except Exception:
                with self._failed_lock:
                    self.failed_writes += 1
                logger.debug(f"Sink {sink!r} raised while writing a record", exc_info=True)

        return record

    def get_logger(self, category: str, context: Optional[CorrelationContext] = None) -> "CategoryLogger":
        """Factory function to create a logger bound to one category"""
        return CategoryLogger(self, category, context)

    def close(self) -> None:
        """Close every sink, waiting for queued writes"""
        for sink in self.sinks:
            try:
                sink.close()
            except Exception:
                logger.warning(f"Failed to close sink {sink!r}", exc_info=True)


class CategoryLogger:
    """Logger for one category, with an optional explicit correlation context"""

    def __init__(self, router: LoggerRouter, category: str,
                 context: Optional[CorrelationContext] = None):
        self.router = router
        self.category = category
        self.context = context

    def bind(self, context: Optional[CorrelationContext]) -> "CategoryLogger":
        """Same category, with log records stamped from `context`"""
        return CategoryLogger(self.router, self.category, context)

    def is_enabled(self, level: LogLevel) -> bool:
        return self.router.is_enabled(level)

    def log(self, level: LogLevel, message: MessageBuilder, error: ErrorLike = None) -> Optional[LogRecord]:
        return self.router.log(level, self.category, message, error=error, context=self.context)

    def trace(self, message: MessageBuilder, error: ErrorLike = None):
        return self.log(LogLevel.TRACE, message, error)

    def debug(self, message: MessageBuilder, error: ErrorLike = None):
        return self.log(LogLevel.DEBUG, message, error)

    def info(self, message: MessageBuilder, error: ErrorLike = None):
        return self.log(LogLevel.INFORMATION, message, error)

    def warning(self, message: MessageBuilder, error: ErrorLike = None):
        return self.log(LogLevel.WARNING, message, error)

    def error(self, message: MessageBuilder, error: ErrorLike = None):
        return self.log(LogLevel.ERROR, message, error)

    def critical(self, message: MessageBuilder, error: ErrorLike = None):
        return self.log(LogLevel.CRITICAL, message, error)

    def exception(self, message: MessageBuilder, error: ErrorLike = None):
        """Log at ERROR with the exception currently being handled"""
        if error is None:
            error = sys.exc_info()[1]
        return self.log(LogLevel.ERROR, message, error)


class RouterHandler(logging.Handler):
    """Forwards stdlib logging records (uvicorn, libraries) into a LoggerRouter"""

    # Our own diagnostics stay on stdlib logging to avoid feedback loops
    ignored_prefix = "ordertrace"

    def __init__(self, router: LoggerRouter, level: int = logging.NOTSET):
        super().__init__(level)
        self.router = router

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == self.ignored_prefix or record.name.startswith(self.ignored_prefix + "."):
            return
        try:
            error = None
            if record.exc_info and record.exc_info[1] is not None:
                error = record.exc_info[1]
            self.router.log(
                LogLevel.from_stdlib(record.levelno),
                record.name,
                record.getMessage,
                error=error,
            )
        except Exception:
            self.handleError(record)


def install_stdlib_bridge(router: LoggerRouter, logger_names: Iterable[str]) -> RouterHandler:
    """
    Attach a RouterHandler to each named stdlib logger

    Returns:
        The shared handler, so callers can detach it again
    """
    handler = RouterHandler(router)
    for name in logger_names:
        target = logging.getLogger(name)
        for existing in list(target.handlers):
            if isinstance(existing, RouterHandler):
                target.removeHandler(existing)
        target.addHandler(handler)
    return handler


def remove_stdlib_bridge(handler: RouterHandler, logger_names: Iterable[str]) -> None:
    for name in logger_names:
        logging.getLogger(name).removeHandler(handler)
