"""Dashboard configuration — env-driven via pydantic-settings.

Reads from a .env file and MONIDASH_* environment variables.  Command-line
flags given to ``monidash`` take precedence over both.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from monidash.models.geometry import Size

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class DashboardSettings(BaseSettings):
    """Dashboard settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export MONIDASH_ADDRESS=ci.example.com:9988
        export MONIDASH_LOG_FILE=/tmp/monidash.log
        export MONIDASH_LOG_LEVEL=DEBUG

    Or via .env file::

        MONIDASH_ADDRESS=localhost:9988
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MONIDASH_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Build server, as host:port.  Required; no default server is assumed.
    address: str | None = None

    # Logging. Curses owns the terminal, so records only go to a file.
    log_level: str = "INFO"
    log_file: Path | None = None

    # Pause after a network error before reading again; 0 retries at once.
    retry_delay: float = Field(default=0.0, ge=0.0)

    # Grid
    min_box_width: int = Field(default=30, ge=1)
    min_box_height: int = Field(default=5, ge=1)
    padding: int = Field(default=1, ge=0)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"unknown log level {value!r}; expected one of {', '.join(LOG_LEVELS)}"
            )
        return level

    @property
    def minimum_box_size(self) -> Size:
        return Size(w=self.min_box_width, h=self.min_box_height)
