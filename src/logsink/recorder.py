"""Caller-facing recorder that turns log calls into records for a sink."""

from __future__ import annotations

import traceback
from datetime import datetime
from typing import Any

from .models import LogRecord, WriteOutcome, utc_now
from .sinks import Clock, LogSink


def _format_stack_trace(exc: BaseException) -> str:
    """Render an exception with its traceback, as printed by the interpreter."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip("\n")


class LogRecorder:
    """Builds `LogRecord`s stamped with the current time and writes them to a sink.

    Hard write failures propagate to the caller. Degraded writes (a retention
    cleanup that could not delete everything) are counted so callers can poll
    `degraded_status()` instead of inspecting every outcome.
    """

    def __init__(self, *, sink: LogSink, clock: Clock | None = None) -> None:
        """Create a recorder backed by a synchronous sink.

        Args:
            sink: Storage backend records are written to.
            clock: Returns the current UTC time; defaults to `utc_now`.
        """
        self._sink = sink
        self._clock = clock or utc_now
        self._closed = False

        # Degradation tracking: counts and time window.
        self._degraded_writes = 0
        self._first_degraded_at: datetime | None = None
        self._last_degraded_at: datetime | None = None

    def log(
        self,
        message: str,
        level: str,
        function_name: str = "",
        context: str = "",
        stack_trace: str = "",
    ) -> WriteOutcome:
        """Write one record. Raises `SinkWriteError` if it could not be persisted."""
        if self._closed:
            raise RuntimeError("LogRecorder is closed")

        record = LogRecord(
            timestamp=self._clock(),
            function_name=function_name,
            level=level,
            message=message,
            context=context,
            stack_trace=stack_trace,
        )
        outcome = self._sink.write(record)
        if outcome.degraded:
            now = self._clock()
            self._degraded_writes += 1
            self._first_degraded_at = self._first_degraded_at or now
            self._last_degraded_at = now
        return outcome

    def log_exception(
        self,
        exc: BaseException,
        *,
        level: str = "Error",
        function_name: str = "",
        context: str = "",
        message: str | None = None,
    ) -> WriteOutcome:
        """Write a record for `exc`, filling the stack trace from its traceback."""
        return self.log(
            message if message is not None else str(exc) or type(exc).__name__,
            level,
            function_name=function_name,
            context=context,
            stack_trace=_format_stack_trace(exc),
        )

    def close(self) -> None:
        """Close the recorder and its sink.

        Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True
        self._sink.close()

    def degraded_status(self) -> dict[str, Any]:
        """Return a minimal degraded-status snapshot."""
        return {
            "degraded_writes": self._degraded_writes,
            "first_degraded_at": self._first_degraded_at,
            "last_degraded_at": self._last_degraded_at,
        }
