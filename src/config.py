"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting environment variables into strongly-typed Pydantic models.
- Validating required fields and providing actionable error messages.
- Configuring the diagnostics channel (stdlib `logging`) for entrypoints.

Per-stream rollover/retention thresholds are not configured here; they live in
the stream directory's `ModuleConfig.json` (see `logsink.policy`).
"""

import logging
import os
from pathlib import Path
from typing import Literal

import dotenv
from pydantic import BaseModel, Field, field_validator


def _get_required_env(name: str) -> str:
    """Read a required env var or raise a helpful error."""
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"{name} is required. Please set it in your .env file.")
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    normalized = raw.strip().lower()
    if normalized in {"true", "1", "yes", "y", "on"}:
        return True
    if normalized in {"false", "0", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean (true/false). Got: {raw!r}")


class SinkConfig(BaseModel):
    """Which sink to build and where it writes."""

    log_file_path: Path = Field(..., description="Active log file of the stream")
    backend: Literal["file", "duckdb"] = Field(default="file", description="Sink backend")
    duckdb_path: Path | None = Field(default=None, description="DuckDB database file")
    echo: bool = Field(default=False, description="Echo written records to stdout")

    @field_validator("log_file_path", mode="before")
    def reject_trailing_separator(cls, v: object) -> object:
        """Reject a directory-like path before `Path` drops its trailing separator."""
        if isinstance(v, str) and v.endswith(("/", os.sep)):
            raise ValueError(
                f"LOGSINK_FILE_PATH must name a file, not a directory. Got: {v!r}"
            )
        return v

    @field_validator("log_file_path")
    def validate_log_file_path(cls, v: Path) -> Path:
        """Require a directory component so the stream directory is explicit."""
        if v.parent == Path("."):
            raise ValueError(
                "LOGSINK_FILE_PATH must include a directory, e.g. 'logs/app.log'."
            )
        return v

    @property
    def resolved_duckdb_path(self) -> Path:
        """DuckDB file, defaulting to `logsink.duckdb` beside the log file."""
        if self.duckdb_path is not None:
            return self.duckdb_path
        return self.log_file_path.parent / "logsink.duckdb"


class Config(BaseModel):
    """Top-level application configuration."""

    sink: SinkConfig = Field(..., description="Sink configuration")
    diagnostics_level: str = Field(default="WARNING", description="Level for the diagnostics logger")

    @field_validator("diagnostics_level")
    def validate_diagnostics_level(cls, v: str) -> str:
        """Accept standard `logging` level names (case-insensitive)."""
        normalized = v.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"LOGSINK_DIAGNOSTICS_LEVEL must be a logging level name. Got: {v!r}")
        return normalized


def load_config() -> Config:
    """Load application configuration from environment variables.

    Notes:
    - Calls `dotenv.load_dotenv()` so local `.env` values are visible to the process.
    - Raises `ValueError` with actionable messages when required configuration is
      missing or invalid.
    """
    dotenv.load_dotenv()

    duckdb_path = os.getenv("LOGSINK_DUCKDB_PATH", "").strip()
    sink = SinkConfig(
        log_file_path=_get_required_env("LOGSINK_FILE_PATH"),
        backend=os.getenv("LOGSINK_BACKEND", "file").strip().lower(),
        duckdb_path=Path(duckdb_path) if duckdb_path else None,
        echo=_get_env_bool("LOGSINK_ECHO", False),
    )
    return Config(
        sink=sink,
        diagnostics_level=os.getenv("LOGSINK_DIAGNOSTICS_LEVEL", "WARNING"),
    )


def configure_diagnostics(level: str = "WARNING") -> None:
    """Route sink warnings (config fallback, cleanup failures) to stderr."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
