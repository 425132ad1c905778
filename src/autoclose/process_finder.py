"""Resolve an application record to the live process that most likely runs it."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .candidate_scorer import partition_candidates
from .config.settings import AutoCloseSettings
from .errors import ProcessResolutionError
from .executable_names import derive_executable_names
from .match_selector import select_best_match
from .models import ApplicationRecord, ProcessHandle
from .process_snapshot import capture_snapshot
from .window_backend import WindowBackend, get_default_window_backend

logger = logging.getLogger(__name__)

SnapshotProvider = Callable[[], List[ProcessHandle]]


class ProcessFinder:
    """Runs one full resolution per call: fresh snapshot, names, partition, pick.

    Nothing is cached between calls; processes come and go between
    resolutions, and a close in progress must not leave stale handles behind.
    """

    def __init__(
        self,
        settings: Optional[AutoCloseSettings] = None,
        *,
        window_backend: Optional[WindowBackend] = None,
        snapshot_provider: Optional[SnapshotProvider] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or AutoCloseSettings()
        self._window_backend = window_backend
        self._snapshot_provider = snapshot_provider
        self._log = log or logger

    @property
    def window_backend(self) -> WindowBackend:
        if self._window_backend is None:
            self._window_backend = get_default_window_backend()
        return self._window_backend

    def _take_snapshot(self) -> List[ProcessHandle]:
        if self._snapshot_provider is not None:
            return self._snapshot_provider()
        return capture_snapshot(
            self.window_backend,
            min_resident_memory_bytes=self._settings.min_resident_memory_bytes,
            log=self._log,
        )

    def find(self, record: Optional[ApplicationRecord], previous_pid: Optional[int] = None) -> Optional[ProcessHandle]:
        """
        Return the best-matching live process for ``record``.

        Args:
            record: Application to resolve
            previous_pid: Pid the host last saw for this application, preferred
                among processes whose path could not be read

        Returns:
            The selected process, or ``None`` when nothing matches or the scan fails
        """
        if record is None:
            return None
        try:
            snapshot = self._take_snapshot()
            executable_names = derive_executable_names(
                record.install_directory,
                suffixes=self._settings.executable_suffixes,
                log=self._log,
            )
            partition = partition_candidates(snapshot, record, executable_names, log=self._log)
            return select_best_match(partition, previous_pid, log=self._log)
        except ProcessResolutionError as exc:  # policy_guard: allow-silent-handler
            self._log.error("Unable to inspect running processes for %s: %s", record.name, exc)
            return None
        except Exception as exc:  # policy_guard: allow-broad-except
            self._log.error("Error finding game process for %s: %s", record.name, exc)
            return None


__all__ = ["ProcessFinder", "SnapshotProvider"]
