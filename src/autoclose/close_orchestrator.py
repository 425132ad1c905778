"""
Close every other running game before a new one launches.

Usage:
    orchestrator = CloseOrchestrator(store, settings=load_settings())

    # From the host's synchronous "game starting" callback
    report = orchestrator.close_others_sync(new_game)

Each step is isolated: an exception is logged, recorded as a failed
:class:`StepResult` and the sequence moves on, so one stubborn window can
never keep the new game from starting.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable, List, Optional

from .config.settings import AutoCloseSettings
from .entity_store import EntityStore
from .launch_classifier import classify_launch
from .models import (
    ApplicationRecord,
    CloseReport,
    EntityCloseResult,
    LaunchClass,
    StepResult,
    TerminationOutcome,
)
from .notifications import LoggingNotificationSink, NotificationDispatcher, NotificationSink
from .process_finder import ProcessFinder
from .process_terminator import ProcessTerminator
from .window_backend import WindowBackend, get_default_window_backend

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class CloseOrchestrator:
    """Sequences resolution and termination across all other running entities."""

    def __init__(
        self,
        store: EntityStore,
        *,
        settings: Optional[AutoCloseSettings] = None,
        finder: Optional[ProcessFinder] = None,
        terminator: Optional[ProcessTerminator] = None,
        notification_sink: Optional[NotificationSink] = None,
        window_backend: Optional[WindowBackend] = None,
        sleep: Sleep = asyncio.sleep,
        sequence_lock: Optional[threading.Lock] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or AutoCloseSettings()
        self._store = store
        self._log = log or logger
        self._sleep = sleep
        self._sequence_lock = sequence_lock or threading.Lock()

        if (finder is None or terminator is None) and window_backend is None:
            window_backend = get_default_window_backend()
        self._finder = finder or ProcessFinder(self._settings, window_backend=window_backend, log=self._log)
        self._terminator = terminator or ProcessTerminator(
            window_backend,
            graceful_timeout=self._settings.graceful_timeout_seconds,
            force_timeout=self._settings.force_kill_timeout_seconds,
            pre_close_delay=self._settings.graceful_close_delay_seconds,
            log=self._log,
        )
        self._notifications = NotificationDispatcher(
            notification_sink or LoggingNotificationSink(self._log),
            enabled=self._settings.show_notifications,
            log=self._log,
        )

    @property
    def settings(self) -> AutoCloseSettings:
        return self._settings

    def close_others_sync(self, new_entity: ApplicationRecord) -> CloseReport:
        """
        Run :meth:`close_others` to completion and return its report.

        Overlapping calls from other host threads queue behind the sequence in
        progress. Store connections opened on the private loop are released
        before it closes.

        Raises:
            RuntimeError: If called while an event loop is already running in
                this thread.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # policy_guard: allow-silent-handler
            # No running loop is the expected case for a host callback thread
            loop = None

        if loop is not None and loop.is_running():
            raise RuntimeError(
                "close_others_sync cannot run inside an active event loop. Use the async close_others API instead."
            )

        with self._sequence_lock:
            return asyncio.run(self._close_others_and_release(new_entity))

    async def _close_others_and_release(self, new_entity: ApplicationRecord) -> CloseReport:
        try:
            return await self.close_others(new_entity)
        finally:
            try:
                await self._store.close()
            except Exception as exc:  # policy_guard: allow-broad-except
                self._log.warning("AutoClose: failed to release entity store connections: %s", exc)

    async def close_others(self, new_entity: ApplicationRecord) -> CloseReport:
        """Close every other running entity, then wait until ``new_entity`` may launch."""
        report = CloseReport(entity_id=new_entity.id, entity_name=new_entity.name)

        running = await self._list_running(new_entity, report)
        if not running:
            self._log.info("AutoClose: No other games detected as running. No action needed.")
            return report

        self._log.info("AutoClose: New game starting: %s", new_entity.name)
        await self._step(report, "pre_close_delay", self._delay(self._settings.pre_close_delay_seconds))

        self._log.info("AutoClose: Detected %d other games still running. Closing them now.", len(running))
        await self._step(report, "notify_closing", self._notify_closing(len(running), new_entity.name))

        for entity in running:
            report.record(await self._close_entity(entity, report))

        self._log.info("AutoClose: Waiting %dms for process cleanup...", self._settings.process_cleanup_wait_ms)
        await self._step(report, "cleanup_wait", self._delay(self._settings.process_cleanup_wait_seconds))

        await self._step(report, "launch_delay", self._launch_delay(new_entity, report))
        self._log.info("AutoClose: Finished closing games and waiting. Now allowing %s to launch.", new_entity.name)

        await self._step(report, "touch_last_activity", self._touch_last_activity(new_entity))
        return report

    async def _step(self, report: CloseReport, name: str, action: Awaitable[StepResult | None]) -> StepResult:
        try:
            result = await action
        except Exception as exc:  # policy_guard: allow-broad-except
            self._log.error("AutoClose: step %s failed: %s", name, exc)
            return report.record(StepResult.failed(name, str(exc)))
        return report.record(result or StepResult.ok(name))

    async def _list_running(self, new_entity: ApplicationRecord, report: CloseReport) -> List[ApplicationRecord]:
        try:
            running = await self._store.list_running(exclude_id=new_entity.id)
        except Exception as exc:  # policy_guard: allow-broad-except
            self._log.error("AutoClose: failed to list running games: %s", exc)
            report.record(StepResult.failed("list_running", str(exc)))
            return []
        running = [entity for entity in running if entity.id != new_entity.id]
        report.record(StepResult.ok("list_running", f"{len(running)} running"))
        return running

    async def _delay(self, seconds: float) -> None:
        if seconds > 0:
            await self._sleep(seconds)

    async def _notify_closing(self, count: int, new_entity_name: str) -> StepResult:
        if not self._notifications.closing(count, new_entity_name):
            return StepResult.skipped("notify_closing", "notifications disabled or undeliverable")
        return StepResult.ok("notify_closing")

    async def _close_entity(self, entity: ApplicationRecord, report: CloseReport) -> StepResult:
        step_name = f"close:{entity.id}"
        result = EntityCloseResult(entity_id=entity.id, entity_name=entity.name, outcome=TerminationOutcome.CLOSE_FAILED)
        report.closed.append(result)
        try:
            self._log.info("Attempting to close running game: %s", entity.name)
            handle = await asyncio.to_thread(self._finder.find, entity)
            result.pid = handle.pid if handle is not None else None
            result.outcome = await self._terminator.terminate(handle)
            if result.outcome.succeeded:
                result.state_updated = await self._mark_not_running(entity)
            return self._announce_outcome(step_name, result)
        except Exception as exc:  # policy_guard: allow-broad-except
            self._log.error("Error closing game %s: %s", entity.name, exc)
            if not result.outcome.succeeded:
                result.outcome = TerminationOutcome.CLOSE_FAILED
                self._notifications.close_failed(entity.name)
            return StepResult.failed(step_name, str(exc))

    def _announce_outcome(self, step_name: str, result: EntityCloseResult) -> StepResult:
        if result.outcome.succeeded:
            self._log.info("Successfully closed game: %s", result.entity_name)
            self._notifications.closed(result.entity_name)
            return StepResult.ok(step_name, result.outcome.value)

        self._log.warning("Failed to close game: %s (%s)", result.entity_name, result.outcome.value)
        self._notifications.close_failed(result.entity_name)
        if result.outcome is TerminationOutcome.NO_PROCESS_FOUND:
            return StepResult.skipped(step_name, "no process found")
        return StepResult.failed(step_name, result.outcome.value)

    async def _mark_not_running(self, entity: ApplicationRecord) -> bool:
        try:
            updated = await self._store.set_running(entity.id, False)
        except Exception as exc:  # policy_guard: allow-broad-except
            self._log.error("Failed to update game state in database for %s: %s", entity.name, exc)
            return False
        if updated:
            self._log.info("Updated game library: %s is no longer running.", entity.name)
        else:
            self._log.warning("Game library did not accept running=False for %s", entity.name)
        return bool(updated)

    async def _launch_delay(self, new_entity: ApplicationRecord, report: CloseReport) -> StepResult:
        launch_class = classify_launch(new_entity, self._settings.platform_markers)
        if launch_class is LaunchClass.PLATFORM:
            delay = self._settings.platform_start_delay_seconds
        else:
            delay = self._settings.standalone_start_delay_seconds
        report.launch_class = launch_class
        report.launch_delay_seconds = delay

        self._log.info(
            "AutoClose: %s game detected. Delaying game launch for %dms...",
            "Platform" if launch_class is LaunchClass.PLATFORM else "Standalone",
            int(delay * 1000),
        )
        await self._delay(delay)
        return StepResult.ok("launch_delay", launch_class.value)

    async def _touch_last_activity(self, new_entity: ApplicationRecord) -> StepResult:
        if await self._store.touch_last_activity(new_entity.id):
            self._log.info("AutoClose: Nudged recent-activity tracking for %s.", new_entity.name)
            return StepResult.ok("touch_last_activity")
        self._log.warning("AutoClose: Failed to update LastActivity for %s.", new_entity.name)
        return StepResult.failed("touch_last_activity", "store rejected update")


__all__ = ["CloseOrchestrator"]
