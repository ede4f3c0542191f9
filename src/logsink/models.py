"""Log record and stream policy models.

Records are designed to be:
- Immutable once constructed (the sink serializes and discards them).
- Serialized with a fixed field order so downstream consumers can rely on it.
- Strict about their shape: unknown fields are rejected, never written.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_serializer, field_validator

BYTES_PER_MB = 1024 * 1024


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


class LogRecord(BaseModel):
    """One structured log event."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    # Field order here is the wire order.
    timestamp: datetime = Field(default_factory=utc_now, alias="Timestamp")
    function_name: str = Field(default="", alias="FunctionName")
    level: str = Field(alias="ErrorType")
    message: str = Field(alias="Message")
    context: str = Field(default="", alias="Context")
    stack_trace: str = Field(default="", alias="LogStackTrace")

    @field_validator("timestamp")
    @classmethod
    def require_aware_utc(cls, v: datetime) -> datetime:
        """Reject naive datetimes and normalize aware ones to UTC."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("timestamp must be timezone-aware")
        return v.astimezone(timezone.utc)

    @field_serializer("timestamp")
    def format_timestamp(self, v: datetime) -> str:
        return v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")

    def to_json_line(self) -> str:
        """Serialize as a single compact JSON object (no trailing newline)."""
        return self.model_dump_json(by_alias=True)


class StreamPolicy(BaseModel):
    """Rollover and retention thresholds for one log stream."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_size_mb: PositiveInt = 50
    max_file_count: PositiveInt = 50
    max_age_days: PositiveInt = 30
    retention_file_count: PositiveInt = 500

    @property
    def max_size_bytes(self) -> int:
        """Size threshold in bytes derived from `max_size_mb`."""
        return self.max_size_mb * BYTES_PER_MB


class PolicyLoad(BaseModel):
    """Outcome of loading a stream policy.

    `degraded` is true when a configuration resource existed but could not be
    used, in which case `policy` holds the defaults.
    """

    model_config = ConfigDict(frozen=True)

    policy: StreamPolicy = Field(default_factory=StreamPolicy)
    source: Path | None = None
    warnings: tuple[str, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


class CleanupFailure(BaseModel):
    """A sibling file retention cleanup tried and failed to delete."""

    model_config = ConfigDict(frozen=True)

    path: Path
    error: str


class WriteOutcome(BaseModel):
    """Result of a successful `write`.

    Hard failures (rollover, append) raise instead; this only reports what
    happened along the way and whether housekeeping degraded.
    """

    model_config = ConfigDict(frozen=True)

    rolled_over_to: Path | None = None
    deleted: tuple[Path, ...] = ()
    cleanup_failures: tuple[CleanupFailure, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.cleanup_failures)
