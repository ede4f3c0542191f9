"""Log sinks (storage backends)."""

from __future__ import annotations

import errno
import logging
import os
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import duckdb

from .errors import AppendError, ConfigurationError, RolloverError
from .models import CleanupFailure, LogRecord, PolicyLoad, StreamPolicy, WriteOutcome, utc_now
from .policy import load_policy

logger = logging.getLogger(__name__)

ROLLOVER_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
SECONDS_PER_DAY = 24 * 60 * 60

Clock = Callable[[], datetime]


class LogSink(Protocol):
    """A synchronous sink for log records.

    `write` either persists the record and returns a `WriteOutcome` (which may
    be degraded) or raises a `SinkWriteError`.
    """

    def write(self, record: LogRecord) -> WriteOutcome:
        """Persist a single record."""

    def close(self) -> None:
        """Close any underlying resources."""


class InMemoryLogSink:
    """In-memory sink for tests and local debugging."""

    def __init__(self) -> None:
        """Create an empty in-memory sink."""
        self._lock = threading.Lock()
        self._records: list[LogRecord] = []

    def write(self, record: LogRecord) -> WriteOutcome:
        """Append a record to the in-memory list (thread-safe)."""
        with self._lock:
            self._records.append(record)
        return WriteOutcome()

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""

    def snapshot(self) -> Sequence[LogRecord]:
        """Return a point-in-time copy of all recorded entries."""
        with self._lock:
            return list(self._records)


def _split_stream_path(log_file_path: str | os.PathLike[str]) -> tuple[Path, str]:
    """Split a log file path into `(directory, base_name)`.

    Works on the raw string so a bare filename (no directory) and a path ending
    in a separator are both detected rather than silently normalized.
    """
    raw = os.fspath(log_file_path)
    directory, base_name = os.path.split(raw)
    if not directory or not base_name:
        raise ConfigurationError(
            f"Log file path must include a directory and a file name. Got: {raw!r}"
        )
    return Path(directory), base_name


def _first_record_time(path: Path) -> float | None:
    """Timestamp of the first record in `path`, or None if it can't be read."""
    try:
        with path.open("r", encoding="utf-8") as f:
            first_line = f.readline()
        return LogRecord.model_validate_json(first_line).timestamp.timestamp()
    except (OSError, ValueError):
        return None


def _creation_time(path: Path, stat: os.stat_result) -> float:
    """Best available creation time for an active file this sink did not create.

    Platforms without `st_birthtime` (Linux) bump `st_ctime` on every append,
    so the first record's timestamp is used there when it parses.
    """
    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime is not None:
        return birthtime
    first = _first_record_time(path)
    if first is not None:
        return first
    return stat.st_ctime


class FileLogSink:
    """Append-only JSON-lines sink with rollover and retention cleanup.

    The stream is `<directory>/<base_name>` (the active file) plus archival
    files `<base_name>.<yyyyMMddHHmmss>` produced by rollover. Every `write`
    runs, in order: rollover check, append, retention cleanup.

    Single-writer: there is no locking between the rollover check and the
    rename/append. Concurrent writers to the same stream must be serialized
    by the caller.
    """

    def __init__(
        self,
        log_file_path: str | os.PathLike[str],
        *,
        policy: StreamPolicy | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Open a stream; raises `ConfigurationError` for a malformed path.

        Args:
            log_file_path: Path of the active file. Must contain a directory.
            policy: Explicit thresholds. When omitted, they are loaded once from
                the stream directory's configuration resource.
            clock: Returns the current UTC time; defaults to `utc_now`.
        """
        self._directory, self._base_name = _split_stream_path(log_file_path)
        self._path = self._directory / self._base_name
        self._clock = clock or utc_now
        # POSIX time at which this sink created the current active file.
        self._created_at: float | None = None

        if policy is None:
            self._policy_load = load_policy(self._directory)
        else:
            self._policy_load = PolicyLoad(policy=policy)

    @property
    def path(self) -> Path:
        """The active file."""
        return self._path

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def base_name(self) -> str:
        return self._base_name

    @property
    def policy(self) -> StreamPolicy:
        return self._policy_load.policy

    @property
    def policy_load(self) -> PolicyLoad:
        """How the policy was resolved (source file, warnings)."""
        return self._policy_load

    def sibling_files(self) -> list[Path]:
        """Regular files in the stream directory whose name starts with the base name."""
        return [
            entry
            for entry in self._directory.iterdir()
            if entry.name.startswith(self._base_name) and entry.is_file()
        ]

    def should_rollover(self) -> bool:
        """Return True when the active file exists and a threshold is met.

        Raises `RolloverError` if the stream cannot be inspected.
        """
        try:
            stat = self._path.stat()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise RolloverError(f"Failed to inspect {self._path}: {exc}") from exc

        policy = self.policy
        if stat.st_size >= policy.max_size_bytes:
            return True

        now = self._clock().astimezone(timezone.utc).timestamp()
        created_at = self._created_at
        if created_at is None:
            created_at = _creation_time(self._path, stat)
        age_days = (now - created_at) / SECONDS_PER_DAY
        if age_days >= policy.max_age_days:
            return True

        try:
            sibling_count = len(self.sibling_files())
        except OSError as exc:
            raise RolloverError(f"Failed to list {self._directory}: {exc}") from exc
        return sibling_count >= policy.max_file_count

    def archival_path(self, at: datetime) -> Path:
        """Archival name for a rollover happening at `at`."""
        stamp = at.astimezone(timezone.utc).strftime(ROLLOVER_TIMESTAMP_FORMAT)
        return self._directory / f"{self._base_name}.{stamp}"

    def rollover(self) -> Path:
        """Rename the active file to its archival name. Returns the new path."""
        target = self.archival_path(self._clock())
        # os.rename silently replaces an existing target on POSIX.
        if target.exists():
            raise RolloverError(errno.EEXIST, "Rollover target already exists", str(target)) from FileExistsError(
                errno.EEXIST, os.strerror(errno.EEXIST), str(target)
            )
        try:
            self._path.rename(target)
        except OSError as exc:
            raise RolloverError(f"Failed to roll over {self._path} to {target}: {exc}") from exc
        self._created_at = None
        logger.debug("Rolled over %s to %s", self._path, target)
        return target

    def _append(self, record: LogRecord) -> None:
        try:
            line = record.to_json_line() + "\n"
            self._directory.mkdir(parents=True, exist_ok=True)
            created = not self._path.exists()
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        # ValueError covers text the JSON serializer or the UTF-8 codec rejects.
        except (OSError, ValueError) as exc:
            raise AppendError(f"Failed to append to {self._path}: {exc}") from exc
        if created:
            self._created_at = self._clock().astimezone(timezone.utc).timestamp()

    def cleanup_old_logs(self) -> tuple[tuple[Path, ...], tuple[CleanupFailure, ...]]:
        """Delete the oldest siblings beyond `retention_file_count`.

        Best-effort: failures are logged as warnings and returned, never raised.
        Returns `(deleted, failures)`.
        """
        try:
            siblings = self.sibling_files()
        except OSError as exc:
            logger.warning("Failed to list log files in %s: %s", self._directory, exc)
            return (), (CleanupFailure(path=self._directory, error=str(exc)),)

        candidates = []
        for entry in siblings:
            try:
                mtime = entry.stat().st_mtime
            except FileNotFoundError:
                # Removed since the listing.
                continue
            except OSError as exc:
                logger.warning("Failed to stat old log file %s: %s", entry, exc)
                continue
            candidates.append((mtime, entry == self._path, entry.name, entry))
        # Ties on mtime: archival names sort chronologically, active file last.
        candidates.sort()

        excess = len(candidates) - self.policy.retention_file_count
        if excess <= 0:
            return (), ()

        deleted: list[Path] = []
        failures: list[CleanupFailure] = []
        for *_, entry in candidates[:excess]:
            try:
                entry.unlink()
            except OSError as exc:
                logger.warning("Failed to delete old log file %s: %s", entry, exc)
                failures.append(CleanupFailure(path=entry, error=str(exc)))
            else:
                deleted.append(entry)
        return tuple(deleted), tuple(failures)

    def write(self, record: LogRecord) -> WriteOutcome:
        """Roll over if needed, append `record`, then enforce retention."""
        rolled_over_to = self.rollover() if self.should_rollover() else None
        self._append(record)
        deleted, failures = self.cleanup_old_logs()
        return WriteOutcome(rolled_over_to=rolled_over_to, deleted=deleted, cleanup_failures=failures)

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op; the active file is opened per write."""


@dataclass(frozen=True)
class DuckDBOptions:
    path: Path
    table: str = "log_records"


class DuckDBLogSink:
    """DuckDB sink for durable local persistence.

    One row per record; intended as a queryable alternative to JSON lines.
    """

    def __init__(self, *, path: str | Path, table: str = "log_records") -> None:
        """Create (or open) a DuckDB-backed sink at the given path."""
        self._opts = DuckDBOptions(path=Path(path), table=table)
        self._lock = threading.Lock()
        self._conn = duckdb.connect(str(self._opts.path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create the backing table if it does not exist yet."""
        create_sql = f"""
        create table if not exists {self._opts.table} (
          logged_at timestamptz not null,
          function_name varchar not null,
          error_type varchar not null,
          message varchar not null,
          context varchar not null,
          stack_trace varchar not null
        )
        """
        with self._lock:
            self._conn.execute(create_sql)

    def write(self, record: LogRecord) -> WriteOutcome:
        """Insert a single record into DuckDB."""
        insert_sql = f"""
        insert into {self._opts.table}
        (logged_at, function_name, error_type, message, context, stack_trace)
        values (?, ?, ?, ?, ?, ?)
        """
        try:
            with self._lock:
                self._conn.execute(
                    insert_sql,
                    [
                        record.timestamp,
                        record.function_name,
                        record.level,
                        record.message,
                        record.context,
                        record.stack_trace,
                    ],
                )
        except duckdb.Error as exc:
            raise AppendError(f"Failed to insert into {self._opts.path}: {exc}") from exc
        return WriteOutcome()

    def fetch_messages(self) -> list[tuple[str, str]]:
        """Return `(error_type, message)` pairs in insertion order."""
        with self._lock:
            return self._conn.execute(
                f"select error_type, message from {self._opts.table} order by rowid"
            ).fetchall()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()
