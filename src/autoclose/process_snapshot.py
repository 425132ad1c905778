"""Point-in-time capture of plausible foreground processes."""

from __future__ import annotations

import logging
import os
from typing import List, Optional

import psutil

from .errors import ProcessResolutionError
from .models import ProcessHandle
from .window_backend import MainWindow, WindowBackend

logger = logging.getLogger(__name__)

DEFAULT_MIN_RESIDENT_MEMORY_BYTES = 100 * 1024 * 1024

_PER_PROCESS_ERRORS = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess, OSError)


def resolve_executable_path(proc, window_backend: WindowBackend) -> Optional[str]:
    """
    Resolve a process's executable path.

    Tries psutil's direct module query first, then the backend's
    privilege-limited query. ``None`` means the path is unknown, which the
    scorer treats differently from a known path that does not match.
    """
    try:
        path = proc.exe()
    except (psutil.Error, OSError) as exc:  # policy_guard: allow-silent-handler
        logger.debug("Direct path query failed for pid %s: %s", proc.pid, exc)
    else:
        if path:
            return path

    try:
        return window_backend.query_image_path(proc.pid) or None
    except OSError as exc:  # policy_guard: allow-silent-handler
        logger.debug("Limited path query failed for pid %s: %s", proc.pid, exc)
        return None


def _is_exited(proc) -> bool:
    if not proc.is_running():
        return True
    return proc.status() == psutil.STATUS_ZOMBIE


def _build_handle(proc, window: MainWindow, window_backend: WindowBackend, min_resident_memory_bytes: int) -> Optional[ProcessHandle]:
    if _is_exited(proc):
        return None
    resident_memory = proc.memory_info().rss
    if resident_memory <= min_resident_memory_bytes:
        return None

    raw_name = proc.info.get("name") or proc.name()
    return ProcessHandle(
        pid=proc.pid,
        name=os.path.splitext(raw_name)[0],
        window_handle=window.handle,
        window_title=window.title,
        resident_memory=resident_memory,
        executable_path=resolve_executable_path(proc, window_backend),
        exited=False,
        process=proc,
    )


def capture_snapshot(
    window_backend: WindowBackend,
    *,
    min_resident_memory_bytes: int = DEFAULT_MIN_RESIDENT_MEMORY_BYTES,
    log: Optional[logging.Logger] = None,
) -> List[ProcessHandle]:
    """
    Enumerate processes that could plausibly be a running game.

    A process qualifies when it has not exited, owns a main window with a
    non-empty title and holds more than ``min_resident_memory_bytes`` of
    resident memory. Processes that vanish or deny access mid-scan are skipped.

    Returns:
        Fresh handles owned by the caller

    Raises:
        ProcessResolutionError: If the window index or the process table
            cannot be read at all
    """
    log = log or logger
    try:
        windows = window_backend.main_windows()
    except OSError as exc:
        raise ProcessResolutionError(f"Failed to enumerate windows: {exc}") from exc

    snapshot: List[ProcessHandle] = []
    try:
        for proc in psutil.process_iter(["pid", "name"]):
            window = windows.get(proc.pid)
            if window is None or not window.title:
                continue
            try:
                handle = _build_handle(proc, window, window_backend, min_resident_memory_bytes)
            except _PER_PROCESS_ERRORS as exc:  # policy_guard: allow-silent-handler
                log.debug("Skipping pid %s during snapshot: %s", proc.pid, exc)
                continue
            if handle is not None:
                snapshot.append(handle)
    except (psutil.Error, OSError) as exc:
        raise ProcessResolutionError(f"Error enumerating processes: {exc}") from exc

    log.debug("Found %d candidate processes with windows", len(snapshot))
    return snapshot


__all__ = ["DEFAULT_MIN_RESIDENT_MEMORY_BYTES", "capture_snapshot", "resolve_executable_path"]
