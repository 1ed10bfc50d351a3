from typing import List, Optional
from ordertrace.config import Settings
from ordertrace.database import LogStore
from ordertrace.records import LogLevel
from ordertrace.router import LoggerRouter
from ordertrace.sinks.base import LogSink
from ordertrace.sinks.console import ConsoleSink, DebugSink
from ordertrace.sinks.database import DatabaseSink
from ordertrace.sinks.file import RollingFileSink


def build_sinks(settings: Settings, log_store: Optional[LogStore] = None) -> List[LogSink]:
    """
    Create the sinks enabled by the settings

    Args:
        settings: Application settings
        log_store: Storage for the database sink (required unless the
            database sink is disabled)

    Returns:
        Sinks in dispatch order: console, debug, file, database
    """
    sinks: List[LogSink] = []

    # Console sink (human-readable)
    if settings.console_min_level != LogLevel.NONE:
        sinks.append(ConsoleSink(minimum_level=settings.console_min_level))

    # Debug sink - JSON format (for log aggregation tools)
    if settings.debug_min_level != LogLevel.NONE:
        sinks.append(DebugSink(minimum_level=settings.debug_min_level))

    # File sink - one line per record, optionally one file per day
    if settings.file_min_level != LogLevel.NONE:
        sinks.append(
            RollingFileSink(
                file_path=settings.file_path,
                minimum_level=settings.file_min_level,
                use_daily_rolling_files=settings.use_daily_rolling_files,
            )
        )

    # Database sink - background inserts
    if settings.database_min_level != LogLevel.NONE:
        if log_store is None:
            raise ValueError("A LogStore is required when the database sink is enabled")
        sinks.append(
            DatabaseSink(
                log_store.session_factory,
                minimum_level=settings.database_min_level,
                max_workers=settings.database_workers,
            )
        )

    return sinks


def setup_logger_router(settings: Settings, log_store: Optional[LogStore] = None) -> LoggerRouter:
    """Build the process-wide LoggerRouter from settings"""
    return LoggerRouter(build_sinks(settings, log_store))
