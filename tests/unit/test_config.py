from pathlib import Path

import pytest

from config import Config, SinkConfig, load_config

_ENV_VARS = [
    "LOGSINK_FILE_PATH",
    "LOGSINK_BACKEND",
    "LOGSINK_DUCKDB_PATH",
    "LOGSINK_DIAGNOSTICS_LEVEL",
    "LOGSINK_ECHO",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    # Keep a developer's local `.env` out of these tests.
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("config.dotenv.load_dotenv", lambda *args, **kwargs: False)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_sink_config_requires_directory():
    with pytest.raises(ValueError):
        SinkConfig(log_file_path=Path("app.log"))


def test_sink_config_duckdb_path_defaults_beside_log_file():
    cfg = SinkConfig(log_file_path=Path("logs/app.log"))
    assert cfg.resolved_duckdb_path == Path("logs/logsink.duckdb")

    cfg = SinkConfig(log_file_path=Path("logs/app.log"), duckdb_path=Path("db/x.duckdb"))
    assert cfg.resolved_duckdb_path == Path("db/x.duckdb")


def test_diagnostics_level_is_validated():
    sink = SinkConfig(log_file_path=Path("logs/app.log"))
    assert Config(sink=sink, diagnostics_level="debug").diagnostics_level == "DEBUG"
    with pytest.raises(ValueError):
        Config(sink=sink, diagnostics_level="chatty")


def test_load_config_requires_file_path():
    with pytest.raises(ValueError, match="LOGSINK_FILE_PATH"):
        load_config()


def test_load_config_reads_required_and_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOGSINK_FILE_PATH", "logs/app.log")

    cfg = load_config()
    assert cfg.sink.log_file_path == Path("logs/app.log")
    assert cfg.sink.backend == "file"
    assert cfg.sink.duckdb_path is None
    assert cfg.sink.echo is False
    assert cfg.diagnostics_level == "WARNING"


def test_load_config_parses_optional_fields(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOGSINK_FILE_PATH", "logs/app.log")
    monkeypatch.setenv("LOGSINK_BACKEND", "DuckDB")
    monkeypatch.setenv("LOGSINK_DUCKDB_PATH", "data/records.duckdb")
    monkeypatch.setenv("LOGSINK_DIAGNOSTICS_LEVEL", "info")
    monkeypatch.setenv("LOGSINK_ECHO", "yes")

    cfg = load_config()
    assert cfg.sink.backend == "duckdb"
    assert cfg.sink.resolved_duckdb_path == Path("data/records.duckdb")
    assert cfg.sink.echo is True
    assert cfg.diagnostics_level == "INFO"


@pytest.mark.parametrize("name,value", [("LOGSINK_ECHO", "maybe"), ("LOGSINK_BACKEND", "syslog")])
def test_load_config_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str):
    monkeypatch.setenv("LOGSINK_FILE_PATH", "logs/app.log")
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        load_config()


def test_sink_config_rejects_trailing_separator():
    with pytest.raises(ValueError, match="must name a file"):
        SinkConfig(log_file_path="logs/sub/")


def test_load_config_rejects_directory_file_path(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOGSINK_FILE_PATH", "logs/sub/")

    with pytest.raises(ValueError, match="must name a file"):
        load_config()
