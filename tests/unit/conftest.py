from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def write_module_config() -> Callable[[Path, Any], Path]:
    """Write a `ModuleConfig.json` into a directory.

    Strings are written verbatim (for malformed documents); anything else is
    JSON-encoded.
    """

    def _write(directory: Path, payload: Any) -> Path:
        path = directory / "ModuleConfig.json"
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_archival() -> Callable[..., Path]:
    """Create an archival file with a given mtime (seconds since the epoch)."""

    def _make(directory: Path, name: str, *, mtime: float, content: str = "{}\n") -> Path:
        path = directory / name
        path.write_text(content, encoding="utf-8")
        os.utime(path, (mtime, mtime))
        return path

    return _make
