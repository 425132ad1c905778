"""Close a resolved process gracefully, escalating to a forced kill."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import psutil

from .models import ProcessHandle, TerminationOutcome
from .window_backend import WindowBackend

logger = logging.getLogger(__name__)

DEFAULT_GRACEFUL_TIMEOUT_SECONDS = 10.0
DEFAULT_FORCE_KILL_TIMEOUT_SECONDS = 3.0


class TerminationState(Enum):
    IDLE = "idle"
    GRACEFUL_REQUESTED = "graceful_requested"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    FORCE_KILL_REQUESTED = "force_kill_requested"
    DONE = "done"


@dataclass
class TerminationAttempt:
    """State trail of one termination, kept for logging and inspection."""

    pid: int
    name: str
    state: TerminationState = TerminationState.IDLE
    history: List[TerminationState] = field(default_factory=lambda: [TerminationState.IDLE])

    def advance(self, state: TerminationState) -> None:
        logger.debug("Process %s (%s): %s -> %s", self.name, self.pid, self.state.value, state.value)
        self.state = state
        self.history.append(state)


class ProcessTerminator:
    """
    Drives ``IDLE -> GRACEFUL_REQUESTED -> (EXITED | TIMED_OUT) -> FORCE_KILL_REQUESTED -> DONE``.

    The psutil calls block, so the attempt runs on a worker thread while the
    calling coroutine suspends. No exception leaves :meth:`terminate`.
    """

    def __init__(
        self,
        window_backend: WindowBackend,
        *,
        graceful_timeout: float = DEFAULT_GRACEFUL_TIMEOUT_SECONDS,
        force_timeout: float = DEFAULT_FORCE_KILL_TIMEOUT_SECONDS,
        pre_close_delay: float = 0.0,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._window_backend = window_backend
        self.graceful_timeout = graceful_timeout
        self.force_timeout = force_timeout
        self.pre_close_delay = pre_close_delay
        self._log = log or logger
        self.last_attempt: Optional[TerminationAttempt] = None

    async def terminate(self, handle: Optional[ProcessHandle]) -> TerminationOutcome:
        """
        Close ``handle``'s process and report how it ended.

        Returns:
            ``NO_PROCESS_FOUND`` for ``None``; ``GRACEFULLY_CLOSED`` when the
            process exits within the graceful timeout; ``FORCE_KILLED`` after
            escalation; ``CLOSE_FAILED`` when the attempt itself raised
        """
        if handle is None:
            return TerminationOutcome.NO_PROCESS_FOUND

        if self.pre_close_delay > 0:
            await asyncio.sleep(self.pre_close_delay)

        return await asyncio.to_thread(self.terminate_blocking, handle)

    def terminate_blocking(self, handle: ProcessHandle) -> TerminationOutcome:
        """Synchronous body of :meth:`terminate`; also used by the CLI."""
        attempt = TerminationAttempt(pid=handle.pid, name=handle.name)
        self.last_attempt = attempt
        proc = handle.process
        try:
            self._log.info("Attempting graceful close for process: %s (ID: %s)", handle.name, handle.pid)
            self._request_graceful_close(handle)
            attempt.advance(TerminationState.GRACEFUL_REQUESTED)

            if self._wait_for_exit(proc, self.graceful_timeout, handle):
                attempt.advance(TerminationState.EXITED)
                attempt.advance(TerminationState.DONE)
                self._log.info("Process %s closed gracefully.", handle.name)
                return TerminationOutcome.GRACEFULLY_CLOSED

            attempt.advance(TerminationState.TIMED_OUT)
            if not proc.is_running():
                # Exited between the timed-out wait and this check
                attempt.advance(TerminationState.DONE)
                self._log.info("Process %s exited after the graceful timeout.", handle.name)
                return TerminationOutcome.GRACEFULLY_CLOSED

            self._log.info("Graceful close failed. Forcefully killing the process.")
            proc.kill()
            attempt.advance(TerminationState.FORCE_KILL_REQUESTED)
            if self._wait_for_exit(proc, self.force_timeout, handle):
                attempt.advance(TerminationState.EXITED)
            attempt.advance(TerminationState.DONE)
            return TerminationOutcome.FORCE_KILLED
        except (psutil.Error, OSError, RuntimeError) as exc:  # policy_guard: allow-silent-handler
            self._log.error("Error closing process %s (ID: %s): %s", handle.name, handle.pid, exc)
            attempt.advance(TerminationState.DONE)
            return TerminationOutcome.CLOSE_FAILED

    def _request_graceful_close(self, handle: ProcessHandle) -> None:
        if handle.window_handle and self._window_backend.close_main_window(handle.window_handle):
            return
        if sys.platform == "win32":
            # TerminateProcess is a kill; leave escalation to the timed wait
            self._log.debug("Close message for %s was not delivered; waiting before kill", handle.pid)
            return
        self._log.debug("No main window to close for %s; sending terminate", handle.pid)
        handle.process.terminate()

    def _wait_for_exit(self, proc, timeout: float, handle: ProcessHandle) -> bool:
        """Wait up to ``timeout`` seconds; a wait that raises counts as exited."""
        try:
            proc.wait(timeout=timeout)
        except psutil.TimeoutExpired:  # policy_guard: allow-silent-handler
            self._log.debug("Process %s did not exit within %ss", handle.pid, timeout)
            return False
        except (psutil.Error, OSError) as exc:  # policy_guard: allow-silent-handler
            self._log.debug("Wait for process %s failed (%s); assuming it exited", handle.pid, exc)
            return True
        return True


__all__ = [
    "DEFAULT_FORCE_KILL_TIMEOUT_SECONDS",
    "DEFAULT_GRACEFUL_TIMEOUT_SECONDS",
    "ProcessTerminator",
    "TerminationAttempt",
    "TerminationState",
]
