"""SQLAlchemy model and storage for persisted log entries."""

import logging
from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, desc, select
from sqlalchemy.orm import declarative_base, sessionmaker

from ordertrace.records import LogRecord


logger = logging.getLogger(__name__)

Base: Any = declarative_base()


class LogEntry(Base):
    """Table for storing log records."""

    __tablename__ = "log_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp_utc = Column(DateTime, nullable=False, index=True)
    log_level = Column(String(20), nullable=False)
    category = Column(String(256), nullable=False)
    message = Column(Text, nullable=False)
    exception_message = Column(Text, nullable=True)
    exception_stack_trace = Column(Text, nullable=True)
    correlation_id = Column(String(128), nullable=True, index=True)

    @classmethod
    def from_record(cls, record: LogRecord) -> "LogEntry":
        return cls(
            # Stored naive, always UTC
            timestamp_utc=record.timestamp_utc.replace(tzinfo=None),
            log_level=record.level.label,
            category=record.category,
            message=record.message,
            exception_message=record.error.message if record.error else None,
            exception_stack_trace=record.error.stack_trace if record.error else None,
            correlation_id=record.correlation_id,
        )


class LogStore:
    """Engine and session factory for the log database."""

    def __init__(self, database_url: str = "sqlite:///logs.db"):
        """Initialize log storage.

        Args:
            database_url: Database connection URL
        """
        self.database_url = database_url
        self.engine = create_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False}
            if database_url.startswith("sqlite")
            else {},
        )
        self.session_factory = sessionmaker(bind=self.engine)

    def initialize(self) -> None:
        """Create the database directory (SQLite) and tables if they don't exist."""
        try:
            if self.database_url.startswith("sqlite:///") and ":memory:" not in self.database_url:
                db_file = Path(self.database_url.replace("sqlite:///", "", 1))
                db_file.parent.mkdir(parents=True, exist_ok=True)

            Base.metadata.create_all(self.engine)

            logger.info("Log database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize log database: {e}")
            raise

    def list_entries(
        self, correlation_id: Optional[str] = None, limit: int = 100
    ) -> List[LogEntry]:
        """Read stored entries, newest first.

        Args:
            correlation_id: Only return entries for this request
            limit: Maximum number of entries
        """
        query = select(LogEntry).order_by(desc(LogEntry.timestamp_utc), desc(LogEntry.id))
        if correlation_id is not None:
            query = query.where(LogEntry.correlation_id == correlation_id)
        query = query.limit(limit)

        with self.session_factory(expire_on_commit=False) as session:
            return list(session.scalars(query))

    def close(self) -> None:
        """Close the database connection."""
        self.engine.dispose()
