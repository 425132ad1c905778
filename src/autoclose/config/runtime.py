from __future__ import annotations

"""Typed access to ``AUTOCLOSE_*`` environment variables with file fallbacks."""


import os
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")

_BOOL_TOKENS: Dict[str, bool] = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}

_DOTENV_CANDIDATES = (Path(".env"), Path.home() / ".autoclose.env")
_JSON_ENV_CANDIDATES = (Path("config/autoclose_env.json"), Path.home() / ".autoclose_env.json")

_DEFAULT_VALUES: Optional[Dict[str, str]] = None


def _file_defaults() -> Dict[str, str]:
    """Merge every defaults file once; earlier files win on conflicts."""
    from .file_defaults import read_dotenv, read_json_defaults

    global _DEFAULT_VALUES
    if _DEFAULT_VALUES is None:
        merged: Dict[str, str] = {}
        for path in _DOTENV_CANDIDATES:
            for key, value in read_dotenv(path).items():
                merged.setdefault(key, value)
        for path in _JSON_ENV_CANDIDATES:
            for key, value in read_json_defaults(path).items():
                merged.setdefault(key, value)
        _DEFAULT_VALUES = merged
    return _DEFAULT_VALUES


def reset_default_values() -> None:
    """Drop cached file defaults so the next lookup re-reads them."""
    global _DEFAULT_VALUES
    _DEFAULT_VALUES = None


def env_str(
    name: str,
    or_value: Optional[str] = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> Optional[str]:
    """Return ``name`` from the environment, then from defaults files, then ``or_value``."""

    def _usable(candidate: Optional[str]) -> Optional[str]:
        if candidate is None:
            return None
        if strip:
            candidate = candidate.strip()
        if candidate == "" and not allow_blank:
            return None
        return candidate

    value = _usable(os.getenv(name))
    if value is None:
        value = _usable(_file_defaults().get(name))
    if value is not None:
        return value
    if required:
        raise ConfigurationError.missing_value(name)
    return or_value


def _env_typed(name: str, or_value: Optional[T], required: bool, kind: str, convert: Callable[[str], T]) -> Optional[T]:
    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError.missing_value(name)
        return or_value
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigurationError.invalid_value(name, raw, f"expected {kind}") from exc


def _parse_bool(raw: str) -> bool:
    try:
        return _BOOL_TOKENS[raw.lower()]
    except KeyError:
        raise ValueError(raw) from None


def env_int(name: str, or_value: Optional[int] = None, *, required: bool = False) -> Optional[int]:
    return _env_typed(name, or_value, required, "an integer", int)


def env_float(name: str, or_value: Optional[float] = None, *, required: bool = False) -> Optional[float]:
    return _env_typed(name, or_value, required, "a number", float)


def env_bool(name: str, or_value: Optional[bool] = None, *, required: bool = False) -> Optional[bool]:
    """Accepts ``1/0``, ``true/false``, ``yes/no`` and ``on/off`` in any case."""
    return _env_typed(name, or_value, required, "a boolean", _parse_bool)


def env_list(
    name: str,
    *,
    or_value: Optional[Sequence[str]] = None,
    separator: str = ",",
    unique: bool = True,
) -> Optional[tuple[str, ...]]:
    """Split a delimited variable into stripped, non-blank items."""
    raw = env_str(name)
    if raw is None:
        return None if or_value is None else tuple(or_value)

    items = [item.strip() for item in raw.split(separator)]
    items = [item for item in items if item]
    if unique:
        items = list(dict.fromkeys(items))
    return tuple(items)


__all__ = [
    "ConfigurationError",
    "env_bool",
    "env_float",
    "env_int",
    "env_list",
    "env_str",
    "reset_default_values",
]
