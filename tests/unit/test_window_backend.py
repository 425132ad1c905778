import sys

import pytest

from autoclose import window_backend
from autoclose.window_backend import HeadlessWindowBackend, get_default_window_backend


def test_headless_backend_reports_nothing():
    backend = HeadlessWindowBackend()

    assert backend.main_windows() == {}
    assert backend.close_main_window(123) is False
    assert backend.query_image_path(1) is None


def test_default_backend_is_headless_off_windows(monkeypatch):
    monkeypatch.setattr(window_backend.sys, "platform", "linux")

    assert isinstance(get_default_window_backend(), HeadlessWindowBackend)


@pytest.mark.skipif(sys.platform != "win32", reason="requires pywin32")
def test_default_backend_uses_win32_on_windows():
    assert isinstance(get_default_window_backend(), window_backend.Win32WindowBackend)
