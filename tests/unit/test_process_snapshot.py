from types import SimpleNamespace

import psutil
import pytest

from autoclose.errors import ProcessResolutionError
from autoclose.process_snapshot import capture_snapshot, resolve_executable_path
from autoclose.window_backend import MainWindow
from tests.helpers.process_fakes import MIB, FakeWindowBackend


class _SnapshotProcess:
    def __init__(self, pid, name, *, rss=200 * MIB, exe=None, exe_error=None, running=True, status=psutil.STATUS_RUNNING, memory_error=None):
        self.pid = pid
        self.info = {"pid": pid, "name": name}
        self._rss = rss
        self._exe = exe
        self._exe_error = exe_error
        self._running = running
        self._status = status
        self._memory_error = memory_error

    def name(self):
        return self.info["name"]

    def exe(self):
        if self._exe_error is not None:
            raise self._exe_error
        return self._exe

    def is_running(self):
        return self._running

    def status(self):
        return self._status

    def memory_info(self):
        if self._memory_error is not None:
            raise self._memory_error
        return SimpleNamespace(rss=self._rss)


@pytest.fixture
def install_processes(monkeypatch):
    def _install(processes):
        monkeypatch.setattr(psutil, "process_iter", lambda attrs=None: iter(processes))

    return _install


def test_snapshot_keeps_windowed_processes_above_memory_floor(install_processes):
    install_processes(
        [
            _SnapshotProcess(1, "Game.exe", exe=r"C:\Games\Game\Game.exe"),
            _SnapshotProcess(2, "tiny.exe", rss=10 * MIB, exe=r"C:\tiny.exe"),
            _SnapshotProcess(3, "background.exe", exe=r"C:\bg.exe"),
            _SnapshotProcess(4, "untitled.exe", exe=r"C:\untitled.exe"),
        ]
    )
    backend = FakeWindowBackend({1: MainWindow(100, "Game"), 2: MainWindow(200, "Tiny"), 4: MainWindow(400, "")})

    snapshot = capture_snapshot(backend, min_resident_memory_bytes=100 * MIB)

    assert [handle.pid for handle in snapshot] == [1]
    handle = snapshot[0]
    assert handle.name == "Game"
    assert handle.window_handle == 100
    assert handle.window_title == "Game"
    assert handle.executable_path == r"C:\Games\Game\Game.exe"
    assert handle.resident_memory == 200 * MIB


def test_snapshot_excludes_exited_and_zombie_processes(install_processes):
    install_processes(
        [
            _SnapshotProcess(1, "gone.exe", running=False),
            _SnapshotProcess(2, "zombie.exe", status=psutil.STATUS_ZOMBIE),
        ]
    )
    backend = FakeWindowBackend({1: MainWindow(1, "Gone"), 2: MainWindow(2, "Zombie")})

    assert capture_snapshot(backend) == []


def test_snapshot_skips_processes_that_vanish_mid_scan(install_processes):
    install_processes(
        [
            _SnapshotProcess(1, "vanish.exe", memory_error=psutil.NoSuchProcess(1)),
            _SnapshotProcess(2, "denied.exe", memory_error=psutil.AccessDenied(2)),
            _SnapshotProcess(3, "ok.exe", exe=r"C:\ok.exe"),
        ]
    )
    backend = FakeWindowBackend({pid: MainWindow(pid, f"W{pid}") for pid in (1, 2, 3)})

    assert [handle.pid for handle in capture_snapshot(backend)] == [3]


def test_path_falls_back_to_limited_query():
    proc = _SnapshotProcess(5, "x.exe", exe_error=psutil.AccessDenied(5))
    backend = FakeWindowBackend(image_paths={5: r"C:\Protected\x.exe"})

    assert resolve_executable_path(proc, backend) == r"C:\Protected\x.exe"


def test_path_unknown_when_both_queries_fail():
    proc = _SnapshotProcess(6, "x.exe", exe_error=psutil.AccessDenied(6))

    assert resolve_executable_path(proc, FakeWindowBackend()) is None


def test_window_enumeration_failure_raises_resolution_error():
    class _BrokenBackend(FakeWindowBackend):
        def main_windows(self):
            raise OSError("desktop unavailable")

    with pytest.raises(ProcessResolutionError):
        capture_snapshot(_BrokenBackend())


def test_process_table_failure_raises_resolution_error(monkeypatch):
    def _broken(attrs=None):
        raise psutil.AccessDenied()

    monkeypatch.setattr(psutil, "process_iter", _broken)

    with pytest.raises(ProcessResolutionError):
        capture_snapshot(FakeWindowBackend({1: MainWindow(1, "x")}))
