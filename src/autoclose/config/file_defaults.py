"""Readers for the optional files that supply ``AUTOCLOSE_*`` defaults.

Two formats are accepted:

- ``.env`` style ``KEY=value`` lines (``#`` comments, optional ``export``)
- a flat JSON object mapping variable names to scalars
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import orjson

from .errors import ConfigurationError


def _unquote(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def read_dotenv(path: Path) -> Dict[str, str]:
    """
    Parse a ``.env`` file into a mapping.

    Args:
        path: File to read; a missing file yields an empty mapping

    Returns:
        Variable names mapped to unquoted string values

    Raises:
        ConfigurationError: If the file exists but cannot be read
    """
    if not path.is_file():
        return {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigurationError.unreadable_file(path, str(exc)) from exc

    values: Dict[str, str] = {}
    for line in lines:
        entry = line.strip()
        if entry.startswith("export "):
            entry = entry[len("export ") :].lstrip()
        if not entry or entry.startswith("#"):
            continue
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if separator and key:
            values[key] = _unquote(raw_value)
    return values


def _scalar_to_env(key: str, value: Any, path: Path) -> str:
    if isinstance(value, (dict, list)):
        raise ConfigurationError.unreadable_file(path, f"{key} must be a scalar")
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def read_json_defaults(path: Path) -> Dict[str, str]:
    """
    Parse a flat JSON defaults file.

    Raises:
        ConfigurationError: If the file is unreadable, not JSON, not an
            object, or holds a nested value
    """
    if not path.is_file():
        return {}
    try:
        payload = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        raise ConfigurationError.unreadable_file(path, "invalid JSON") from exc
    except OSError as exc:
        raise ConfigurationError.unreadable_file(path, str(exc)) from exc

    if not isinstance(payload, dict):
        raise ConfigurationError.unreadable_file(path, "top level must be an object")
    return {str(key): _scalar_to_env(str(key), value, path) for key, value in payload.items()}


__all__ = ["read_dotenv", "read_json_defaults"]
