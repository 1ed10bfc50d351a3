from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List
from dotenv import load_dotenv
from ordertrace.correlation import CORRELATION_ID_HEADER
from ordertrace.records import LogLevel
from ordertrace.sinks.file import DEFAULT_FILE_PATH

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """Application settings loaded from environment variables (prefix ORDERTRACE_)"""

    model_config = SettingsConfigDict(
        env_prefix="ORDERTRACE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Console sink
    console_min_level: LogLevel = Field(default=LogLevel.INFORMATION)

    # Debug sink (JSON on stderr), off unless enabled
    debug_min_level: LogLevel = Field(default=LogLevel.NONE)

    # Text file sink
    file_min_level: LogLevel = Field(default=LogLevel.INFORMATION)
    file_path: str = Field(default=DEFAULT_FILE_PATH)
    use_daily_rolling_files: bool = Field(default=True)

    # Database sink
    database_min_level: LogLevel = Field(default=LogLevel.WARNING)
    database_url: str = Field(default="sqlite:///logs.db")
    database_workers: int = Field(default=2, ge=1)

    # Request correlation
    correlation_header: str = Field(default=CORRELATION_ID_HEADER, min_length=1)

    # Stdlib loggers whose records are forwarded to the sinks
    capture_loggers: List[str] = Field(default_factory=lambda: ["uvicorn.error"])

    @field_validator(
        "console_min_level",
        "debug_min_level",
        "file_min_level",
        "database_min_level",
        mode="before",
    )
    @classmethod
    def parse_level(cls, value):
        """Accept level names such as "Information" or "warning" """
        return LogLevel.parse(value)
