"""Policy store: per-stream rollover/retention thresholds.

The policy is read once, at sink construction, from a JSON resource placed in
the stream's directory:

    {"Logging": {"FileBackend": {"MaxSizeMB": 50, "MaxFileCount": 50,
                                 "MaxAgeDays": 30, "RetentionFileCount": 500}}}

Loading never raises. A missing resource yields the defaults; an unreadable
or unparseable one yields the defaults plus a warning; individual fields that
are absent or malformed keep their own default.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import PositiveInt, TypeAdapter, ValidationError

from .models import PolicyLoad, StreamPolicy

logger = logging.getLogger(__name__)

CONFIG_RESOURCE_NAME: Final = "ModuleConfig.json"

# Resource key -> StreamPolicy field.
_FIELD_KEYS: Final[dict[str, str]] = {
    "MaxSizeMB": "max_size_mb",
    "MaxFileCount": "max_file_count",
    "MaxAgeDays": "max_age_days",
    "RetentionFileCount": "retention_file_count",
}

_positive_int = TypeAdapter(PositiveInt)


def _coerce_positive_int(value: Any) -> int | None:
    """Return `value` as a positive int, or None when it has the wrong shape."""
    # bool is an int subclass; a JSON `true` is not a threshold.
    if isinstance(value, bool):
        return None
    try:
        return _positive_int.validate_python(value)
    except ValidationError:
        return None


def _file_backend_section(document: Any) -> Mapping[str, Any]:
    """Extract `Logging.FileBackend`, or an empty mapping if the shape is off."""
    if not isinstance(document, Mapping):
        return {}
    logging_section = document.get("Logging")
    if not isinstance(logging_section, Mapping):
        return {}
    section = logging_section.get("FileBackend")
    if not isinstance(section, Mapping):
        return {}
    return section


def policy_from_mapping(section: Mapping[str, Any]) -> StreamPolicy:
    """Build a policy from a `FileBackend` section, defaulting field by field."""
    overrides: dict[str, int] = {}
    for key, field_name in _FIELD_KEYS.items():
        if key not in section:
            continue
        value = _coerce_positive_int(section[key])
        if value is None:
            logger.debug("Ignoring %s=%r in log policy; keeping default", key, section[key])
            continue
        overrides[field_name] = value
    return StreamPolicy(**overrides)


def load_policy(directory: str | Path) -> PolicyLoad:
    """Load the policy for a stream living in `directory`."""
    path = Path(directory) / CONFIG_RESOURCE_NAME
    if not path.is_file():
        return PolicyLoad()

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        warning = f"Failed to load file backend config {path}: {exc}"
        logger.warning(warning)
        return PolicyLoad(source=path, warnings=(warning,))

    return PolicyLoad(policy=policy_from_mapping(_file_backend_section(document)), source=path)


def load_stream_policy(directory: str | Path) -> StreamPolicy:
    """Convenience wrapper returning only the resolved policy."""
    return load_policy(directory).policy
