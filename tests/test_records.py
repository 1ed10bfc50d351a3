"""Tests for log levels, thresholds and records."""

import logging
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone

import pytest

from ordertrace.records import ErrorInfo, LogLevel, LogRecord, admit


class TestLogLevel:
    """Test level ordering and parsing."""

    def test_levels_are_totally_ordered(self) -> None:
        assert (
            LogLevel.TRACE
            < LogLevel.DEBUG
            < LogLevel.INFORMATION
            < LogLevel.WARNING
            < LogLevel.ERROR
            < LogLevel.CRITICAL
            < LogLevel.NONE
        )

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Information", LogLevel.INFORMATION),
            ("warning", LogLevel.WARNING),
            (" ERROR ", LogLevel.ERROR),
            ("INFO", LogLevel.INFORMATION),
            ("warn", LogLevel.WARNING),
            ("Fatal", LogLevel.CRITICAL),
            ("None", LogLevel.NONE),
            (LogLevel.DEBUG, LogLevel.DEBUG),
            (0, LogLevel.TRACE),
        ],
    )
    def test_parse(self, value, expected) -> None:
        assert LogLevel.parse(value) is expected

    def test_parse_rejects_unknown_names(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            LogLevel.parse("Verbose")

    def test_stdlib_mapping(self) -> None:
        assert LogLevel.INFORMATION.stdlib_level == logging.INFO
        assert LogLevel.from_stdlib(logging.WARNING) is LogLevel.WARNING
        assert LogLevel.from_stdlib(logging.DEBUG + 5) is LogLevel.DEBUG
        assert LogLevel.from_stdlib(1) is LogLevel.TRACE
        assert LogLevel.from_stdlib(logging.CRITICAL + 5) is LogLevel.CRITICAL

    def test_label(self) -> None:
        assert LogLevel.INFORMATION.label == "Information"


class TestAdmit:
    """Test the threshold function."""

    def test_level_at_or_above_minimum_is_admitted(self) -> None:
        assert admit(LogLevel.WARNING, LogLevel.WARNING)
        assert admit(LogLevel.ERROR, LogLevel.WARNING)

    def test_level_below_minimum_is_dropped(self) -> None:
        assert not admit(LogLevel.INFORMATION, LogLevel.WARNING)

    def test_none_minimum_disables_sink(self) -> None:
        for level in LogLevel:
            assert not admit(level, LogLevel.NONE)

    def test_none_level_is_never_admitted(self) -> None:
        assert not admit(LogLevel.NONE, LogLevel.TRACE)


class TestLogRecord:
    """Test record construction."""

    def test_record_is_immutable(self) -> None:
        record = LogRecord(level=LogLevel.INFORMATION, category="OrderService", message="hi")
        with pytest.raises(FrozenInstanceError):
            record.message = "changed"  # type: ignore[misc]

    def test_default_timestamp_is_utc(self) -> None:
        record = LogRecord(level=LogLevel.INFORMATION, category="OrderService", message="hi")
        assert record.timestamp_utc.tzinfo == timezone.utc

    def test_offset_timestamp_is_converted_to_utc(self) -> None:
        local = datetime(2025, 12, 11, 1, 30, tzinfo=timezone(timedelta(hours=2)))
        record = LogRecord(level=LogLevel.INFORMATION, category="OrderService", message="hi", timestamp_utc=local)
        assert record.timestamp_utc == datetime(2025, 12, 10, 23, 30, tzinfo=timezone.utc)
        assert record.timestamp_utc.tzinfo == timezone.utc

    def test_naive_timestamp_is_taken_as_utc(self) -> None:
        record = LogRecord(level=LogLevel.INFORMATION, category="OrderService", message="hi",
                           timestamp_utc=datetime(2025, 12, 10, 8, 30))
        assert record.timestamp_utc == datetime(2025, 12, 10, 8, 30, tzinfo=timezone.utc)

    def test_error_info_from_raised_exception(self) -> None:
        try:
            raise ValueError("stock exhausted")
        except ValueError as e:
            info = ErrorInfo.from_exception(e)

        assert info.message == "stock exhausted"
        assert "test_error_info_from_raised_exception" in info.stack_trace

    def test_error_info_from_unraised_exception(self) -> None:
        info = ErrorInfo.from_exception(KeyError())
        assert info.message == "KeyError"
        assert info.stack_trace == ""
