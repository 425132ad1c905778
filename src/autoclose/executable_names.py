"""Derive plausible executable base names from an install directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE_SUFFIXES: tuple[str, ...] = (".exe",)


def name_variants(base_name: str) -> List[str]:
    """Return separator-normalized spellings of ``base_name``."""
    return [
        base_name.replace("-", ""),
        base_name.replace("_", ""),
        base_name.replace(" ", ""),
        base_name.replace("-", " "),
        base_name.replace("_", " "),
    ]


def _iter_executables(root: Path, suffixes: Sequence[str]) -> Iterable[Path]:
    for path in root.rglob("*"):
        if path.suffix.lower() in suffixes and path.is_file():
            yield path


def derive_executable_names(
    install_directory: Optional[str],
    *,
    suffixes: Sequence[str] = DEFAULT_EXECUTABLE_SUFFIXES,
    log: Optional[logging.Logger] = None,
) -> List[str]:
    """
    Collect executable base names found anywhere under ``install_directory``.

    Each base name is followed by its variants with ``-``, ``_`` and spaces
    removed, and with ``-`` and ``_`` replaced by a space. Duplicates are kept;
    callers compare case-insensitively.

    Args:
        install_directory: Game install directory, may be ``None`` or empty
        suffixes: Lower-case file suffixes treated as executables
        log: Logger to use instead of the module logger

    Returns:
        Base names plus variants, or an empty list when the directory is
        missing or cannot be enumerated
    """
    log = log or logger
    if not install_directory:
        return []

    root = Path(install_directory)
    try:
        if not root.is_dir():
            log.debug("Install directory %s does not exist; no executables to derive", install_directory)
            return []
        base_names = [path.stem for path in _iter_executables(root, tuple(s.lower() for s in suffixes))]
    except OSError as exc:  # policy_guard: allow-silent-handler
        log.error("Error scanning game directory %s: %s", install_directory, exc)
        return []

    names = list(base_names)
    for base_name in base_names:
        names.extend(name_variants(base_name))

    log.debug("Found %d potential game executables in %s", len(names), install_directory)
    return names


__all__ = ["DEFAULT_EXECUTABLE_SUFFIXES", "derive_executable_names", "name_variants"]
