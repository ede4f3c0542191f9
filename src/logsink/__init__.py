"""Structured log sink.

This package provides:
- Immutable JSON-lines log records with a fixed field order.
- A file sink that rolls the active file over by size, age, or file count,
  and prunes the oldest files beyond a retention limit.
- A per-stream policy loaded once from the stream directory.
- A small recorder facade for callers that log plain strings and exceptions.
"""

from .errors import AppendError, ConfigurationError, LogSinkError, RolloverError, SinkWriteError
from .models import CleanupFailure, LogRecord, PolicyLoad, StreamPolicy, WriteOutcome
from .policy import CONFIG_RESOURCE_NAME, load_policy, load_stream_policy
from .recorder import LogRecorder
from .sinks import DuckDBLogSink, FileLogSink, InMemoryLogSink, LogSink

__all__ = [
    "AppendError",
    "CONFIG_RESOURCE_NAME",
    "CleanupFailure",
    "ConfigurationError",
    "DuckDBLogSink",
    "FileLogSink",
    "InMemoryLogSink",
    "LogRecord",
    "LogRecorder",
    "LogSink",
    "LogSinkError",
    "PolicyLoad",
    "RolloverError",
    "SinkWriteError",
    "StreamPolicy",
    "WriteOutcome",
    "load_policy",
    "load_stream_policy",
]
