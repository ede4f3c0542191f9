"""Exceptions raised by log sinks.

Only hard failures are exceptions. Degraded paths (configuration fallback,
cleanup deletions) are reported through `PolicyLoad` and `WriteOutcome`.
"""

from __future__ import annotations


class LogSinkError(Exception):
    """Base class for log sink errors."""


class ConfigurationError(LogSinkError, ValueError):
    """The sink cannot be constructed (e.g. a malformed stream path)."""


class SinkWriteError(LogSinkError, OSError):
    """A `write` call failed and the record was not persisted."""


class RolloverError(SinkWriteError):
    """The active file could not be renamed to its archival name."""


class AppendError(SinkWriteError):
    """The serialized record could not be appended to the active file."""
