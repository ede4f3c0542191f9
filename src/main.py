"""Demo entrypoint wiring together the log sink components.

This module intentionally contains a small, end-to-end "smoke test" that:

- Loads configuration from environment.
- Builds the configured sink (JSON-lines file stream or DuckDB).
- Writes a few records through the recorder, including a captured exception.

It is **not** intended to be production wiring; it is a convenient manual
harness for checking rollover/retention behaviour against a real directory.
"""

from __future__ import annotations

from config import Config, configure_diagnostics, load_config
from logsink import DuckDBLogSink, FileLogSink, LogRecorder, LogSink, WriteOutcome


def build_sink(cfg: Config) -> LogSink:
    """Instantiate the sink selected by `LOGSINK_BACKEND`."""
    if cfg.sink.backend == "duckdb":
        return DuckDBLogSink(path=cfg.sink.resolved_duckdb_path)
    return FileLogSink(cfg.sink.log_file_path)


def _report(outcome: WriteOutcome, *, echo: bool) -> None:
    """Print what a write did, when echo is enabled."""
    if not echo:
        return
    if outcome.rolled_over_to is not None:
        print(f"[rollover] {outcome.rolled_over_to}")
    for path in outcome.deleted:
        print(f"[cleanup] deleted {path}")
    for failure in outcome.cleanup_failures:
        print(f"[cleanup] failed {failure.path}: {failure.error}")


def run_demo(cfg: Config | None = None) -> None:
    """Write a handful of records to the configured stream."""
    cfg = cfg or load_config()
    configure_diagnostics(cfg.diagnostics_level)

    recorder = LogRecorder(sink=build_sink(cfg))
    try:
        _report(recorder.log("demo started", "Info", function_name="run_demo"), echo=cfg.sink.echo)
        _report(
            recorder.log(
                "window not found",
                "Warning",
                function_name="find_window",
                context="title='Last War'",
            ),
            echo=cfg.sink.echo,
        )
        try:
            {}["missing"]
        except KeyError as exc:
            _report(
                recorder.log_exception(exc, function_name="run_demo", context="demo lookup"),
                echo=cfg.sink.echo,
            )
    finally:
        recorder.close()

    status = recorder.degraded_status()
    if cfg.sink.echo and status["degraded_writes"]:
        print(f"[degraded] {status}")


def main() -> None:
    """CLI entrypoint for running the demo with `python src/main.py` / `logsink-demo`."""
    run_demo()

if __name__ == "__main__":
    main()
