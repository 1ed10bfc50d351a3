"""Shared fixtures."""

import pytest

from ordertrace.config import Settings
from ordertrace.records import LogLevel


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings writing only to tmp_path, with console output off."""
    return Settings(
        console_min_level=LogLevel.NONE,
        debug_min_level=LogLevel.NONE,
        file_min_level=LogLevel.INFORMATION,
        file_path=str(tmp_path / "Logs" / "order-api-log.txt"),
        use_daily_rolling_files=False,
        database_min_level=LogLevel.WARNING,
        database_url=f"sqlite:///{tmp_path / 'logs.db'}",
        capture_loggers=[],
        _env_file=None,
    )
