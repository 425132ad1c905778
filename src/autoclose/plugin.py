"""Host lifecycle facade: the only surface a game library host needs to call."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .close_orchestrator import CloseOrchestrator
from .config.settings import AutoCloseSettings, load_settings
from .entity_store import EntityStore
from .models import ApplicationRecord, CloseReport
from .notifications import NotificationSink
from .window_backend import WindowBackend

logger = logging.getLogger(__name__)


class AutoClosePlugin:
    """Wires settings, store and notification sink into a :class:`CloseOrchestrator`."""

    def __init__(
        self,
        store: EntityStore,
        *,
        settings: Optional[AutoCloseSettings] = None,
        notification_sink: Optional[NotificationSink] = None,
        window_backend: Optional[WindowBackend] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._notification_sink = notification_sink
        self._window_backend = window_backend
        self._log = log or logger
        self._sequence_lock = threading.Lock()
        self._settings = settings or load_settings()
        self._orchestrator = self._build_orchestrator()
        self._log.info("AutoClose plugin has been initialized.")

    def _build_orchestrator(self) -> CloseOrchestrator:
        return CloseOrchestrator(
            self._store,
            settings=self._settings,
            notification_sink=self._notification_sink,
            window_backend=self._window_backend,
            sequence_lock=self._sequence_lock,
            log=self._log,
        )

    @property
    def settings(self) -> AutoCloseSettings:
        return self._settings

    def update_settings(self, settings: AutoCloseSettings) -> None:
        """Swap in edited settings; the next sequence uses them.

        The rebuilt orchestrator shares the plugin's sequence lock, so a
        sequence already running still finishes before the next one starts.
        """
        settings.validate()
        self._settings = settings
        self._orchestrator = self._build_orchestrator()
        self._log.info("AutoClose settings have been updated.")

    def on_entity_starting(self, entity: ApplicationRecord) -> Optional[CloseReport]:
        """
        Host callback fired before ``entity`` launches.

        Blocks until every other running game has been handled and the launch
        delay has elapsed; returns ``None`` when auto-close is disabled.
        """
        self._log.info("AutoClose: game starting event triggered for '%s'.", entity.name)
        if not self._settings.enable_auto_close:
            return None
        return self._orchestrator.close_others_sync(entity)

    def on_application_started(self) -> None:
        self._log.info("AutoClose plugin started")

    def on_application_stopped(self) -> None:
        self._log.info("AutoClose plugin stopped")


__all__ = ["AutoClosePlugin"]
