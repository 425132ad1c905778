"""Main-window lookup, graceful close requests and limited path queries.

psutil has no notion of windows, so the window side of a snapshot comes from
pywin32 on Windows. Other platforms get a backend that reports no windows,
which leaves every process outside the plausible-foreground filter.
"""

from __future__ import annotations

import ctypes
import logging
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

PROCESS_QUERY_LIMITED_INFORMATION = 0x1000
_MAX_IMAGE_PATH = 1024


@dataclass(frozen=True)
class MainWindow:
    handle: int
    title: str


class WindowBackend(Protocol):
    """OS surface the snapshot and terminator need beyond psutil."""

    def main_windows(self) -> Dict[int, MainWindow]:
        """Map pid to its main window for every process that has one."""
        ...

    def close_main_window(self, window_handle: int) -> bool:
        """Ask the window to close; ``True`` when the request was delivered."""
        ...

    def query_image_path(self, pid: int) -> Optional[str]:
        """Executable path through the privilege-limited query, or ``None``."""
        ...


class Win32WindowBackend:
    """pywin32 implementation mirroring ``Process.MainWindowHandle`` semantics.

    A process's main window is its first visible top-level window that has no
    owner, in ``EnumWindows`` z-order.
    """

    def __init__(self) -> None:
        import pywintypes
        import win32con
        import win32gui
        import win32process

        self._error = pywintypes.error
        self._win32con = win32con
        self._win32gui = win32gui
        self._win32process = win32process

    def main_windows(self) -> Dict[int, MainWindow]:
        windows: Dict[int, MainWindow] = {}
        win32gui = self._win32gui

        def _callback(hwnd: int, _extra) -> bool:
            try:
                if not win32gui.IsWindowVisible(hwnd):
                    return True
                if win32gui.GetWindow(hwnd, self._win32con.GW_OWNER):
                    return True
                _, pid = self._win32process.GetWindowThreadProcessId(hwnd)
                if pid and pid not in windows:
                    windows[int(pid)] = MainWindow(handle=int(hwnd), title=win32gui.GetWindowText(hwnd) or "")
            except self._error as exc:  # policy_guard: allow-silent-handler
                # window vanished mid-enumeration
                logger.debug("Skipping window %s during enumeration: %s", hwnd, exc)
            return True

        try:
            win32gui.EnumWindows(_callback, None)
        except self._error as exc:
            raise OSError(f"EnumWindows failed: {exc}") from exc
        return windows

    def close_main_window(self, window_handle: int) -> bool:
        try:
            self._win32gui.PostMessage(window_handle, self._win32con.WM_CLOSE, 0, 0)
        except self._error as exc:  # policy_guard: allow-silent-handler
            logger.debug("WM_CLOSE to window %s failed: %s", window_handle, exc)
            return False
        return True

    def query_image_path(self, pid: int) -> Optional[str]:
        from ctypes import wintypes

        kernel32 = ctypes.windll.kernel32
        handle = kernel32.OpenProcess(PROCESS_QUERY_LIMITED_INFORMATION, False, int(pid))
        if not handle:
            return None
        try:
            size = wintypes.DWORD(_MAX_IMAGE_PATH)
            buffer = ctypes.create_unicode_buffer(size.value)
            if kernel32.QueryFullProcessImageNameW(handle, 0, buffer, ctypes.byref(size)):
                return buffer.value or None
            return None
        finally:
            kernel32.CloseHandle(handle)


class HeadlessWindowBackend:
    """Backend for platforms without a Win32 window manager."""

    def main_windows(self) -> Dict[int, MainWindow]:
        return {}

    def close_main_window(self, window_handle: int) -> bool:
        return False

    def query_image_path(self, pid: int) -> Optional[str]:
        return None


def get_default_window_backend() -> WindowBackend:
    """Return the backend appropriate for the running platform."""
    if sys.platform == "win32":
        return Win32WindowBackend()
    logger.debug("Window enumeration unavailable on %s; using headless backend", sys.platform)
    return HeadlessWindowBackend()


__all__ = [
    "HeadlessWindowBackend",
    "MainWindow",
    "PROCESS_QUERY_LIMITED_INFORMATION",
    "Win32WindowBackend",
    "WindowBackend",
    "get_default_window_backend",
]
