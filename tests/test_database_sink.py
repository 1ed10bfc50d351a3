"""Tests for the database sink and log storage."""

import pytest

from helpers import make_record
from ordertrace.database import LogStore
from ordertrace.records import ErrorInfo, LogLevel
from ordertrace.sinks.database import DatabaseSink


@pytest.fixture
def store(tmp_path):
    """File-backed SQLite store shared by the worker threads."""
    store = LogStore(f"sqlite:///{tmp_path / 'db' / 'logs.db'}")
    store.initialize()
    yield store
    store.close()


class TestLogStore:
    """Test storage initialization and queries."""

    def test_initialize_creates_directory_and_table(self, tmp_path, store) -> None:
        assert (tmp_path / "db" / "logs.db").exists()
        assert store.list_entries() == []


class TestDatabaseSink:
    """Test background persistence."""

    def test_persists_record_fields(self, store) -> None:
        sink = DatabaseSink(store.session_factory)
        record = make_record(
            level=LogLevel.ERROR,
            category="OrderService",
            message="save failed",
            error=ErrorInfo("db down", "at save()"),
            correlation_id="ABCD-1234",
        )

        sink.write(record)
        # Persistence is asynchronous: only inspect after the sink drained
        sink.close()

        entries = store.list_entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.id is not None
        assert entry.log_level == "Error"
        assert entry.category == "OrderService"
        assert entry.message == "save failed"
        assert entry.exception_message == "db down"
        assert entry.exception_stack_trace == "at save()"
        assert entry.correlation_id == "ABCD-1234"
        assert entry.timestamp_utc == record.timestamp_utc.replace(tzinfo=None)

    def test_write_returns_without_waiting(self, store) -> None:
        sink = DatabaseSink(store.session_factory, max_workers=1)

        future = sink.write(make_record(level=LogLevel.WARNING))

        assert future is not None
        sink.close()
        assert future.done()

    def test_list_entries_filters_by_correlation_id(self, store) -> None:
        sink = DatabaseSink(store.session_factory)
        for cid in ("REQ-1", "REQ-2", "REQ-1"):
            sink.write(make_record(level=LogLevel.WARNING, correlation_id=cid))
        sink.close()

        assert len(store.list_entries(correlation_id="REQ-1")) == 2
        assert len(store.list_entries(correlation_id="REQ-2")) == 1
        assert len(store.list_entries(limit=1)) == 1

    def test_failure_is_swallowed_and_next_write_succeeds(self, store) -> None:
        calls = {"count": 0}

        def flaky_session_factory():
            calls["count"] += 1
            if calls["count"] == 1:
                raise ConnectionError("database unavailable")
            return store.session_factory()

        sink = DatabaseSink(flaky_session_factory, max_workers=1)

        first = sink.write(make_record(level=LogLevel.ERROR, message="lost"))
        first.result(timeout=5)
        sink.write(make_record(level=LogLevel.ERROR, message="kept"))
        sink.close()

        assert sink.failures == 1
        assert [e.message for e in store.list_entries()] == ["kept"]

    def test_failed_commit_is_not_retried(self, store) -> None:
        attempts = []

        class BrokenSession:
            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def add(self, entry):
                attempts.append(entry)

            def commit(self):
                raise RuntimeError("constraint violation")

        sink = DatabaseSink(BrokenSession)
        sink.write(make_record(level=LogLevel.ERROR))
        sink.close()

        assert len(attempts) == 1
        assert sink.failures == 1

    def test_write_after_close_is_dropped(self, store) -> None:
        sink = DatabaseSink(store.session_factory)
        sink.close()

        assert sink.write(make_record(level=LogLevel.ERROR)) is None
        assert sink.failures == 1
        assert store.list_entries() == []

    def test_default_minimum_level_is_warning(self, store) -> None:
        sink = DatabaseSink(store.session_factory)
        try:
            assert not sink.is_enabled(LogLevel.INFORMATION)
            assert sink.is_enabled(LogLevel.WARNING)
        finally:
            sink.close()
