"""Data model shared by the resolution and termination components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class LaunchAction:
    """A declared way of starting an application (executable, URL, emulator...)."""

    name: str = ""
    path: Optional[str] = None


@dataclass(frozen=True)
class ApplicationRecord:
    """Library entry for a game as the host knows it.

    ``is_running`` belongs to the external store; the engine only reads it when
    listing running entities and asks the store to change it after a close.
    """

    id: str
    name: str
    install_directory: Optional[str] = None
    launch_actions: Tuple[LaunchAction, ...] = ()
    source: Optional[str] = None
    is_running: bool = False
    last_activity: Optional[datetime] = None


@dataclass
class ProcessHandle:
    """A live process observed by one snapshot.

    ``process`` is the underlying ``psutil.Process`` used for termination.
    ``executable_path`` is ``None`` when neither the direct nor the limited
    path query succeeded.
    """

    pid: int
    name: str
    window_handle: Optional[int]
    window_title: str
    resident_memory: int
    executable_path: Optional[str]
    exited: bool = False
    process: Any = field(default=None, repr=False, compare=False)


class MatchTier(Enum):
    PATH = "path"
    NAME = "name"
    TITLE = "title"
    INACCESSIBLE = "inaccessible"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class TierMatch:
    """Outcome of classifying one process against one record."""

    tier: MatchTier
    score: int = 0

    @property
    def matched(self) -> bool:
        return self.tier is not MatchTier.NO_MATCH


NO_MATCH = TierMatch(MatchTier.NO_MATCH)


@dataclass
class CandidatePartition:
    """Disjoint candidate buckets built for a single resolution call."""

    path: list[ProcessHandle] = field(default_factory=list)
    name: list[ProcessHandle] = field(default_factory=list)
    title: list[tuple[ProcessHandle, int]] = field(default_factory=list)
    inaccessible: list[ProcessHandle] = field(default_factory=list)

    def add(self, process: ProcessHandle, match: TierMatch) -> None:
        if match.tier is MatchTier.PATH:
            self.path.append(process)
        elif match.tier is MatchTier.NAME:
            self.name.append(process)
        elif match.tier is MatchTier.TITLE:
            self.title.append((process, match.score))
        elif match.tier is MatchTier.INACCESSIBLE:
            self.inaccessible.append(process)

    def is_empty(self) -> bool:
        return not (self.path or self.name or self.title or self.inaccessible)

    def counts(self) -> dict[str, int]:
        return {
            MatchTier.PATH.value: len(self.path),
            MatchTier.NAME.value: len(self.name),
            MatchTier.TITLE.value: len(self.title),
            MatchTier.INACCESSIBLE.value: len(self.inaccessible),
        }


class TerminationOutcome(Enum):
    GRACEFULLY_CLOSED = "gracefully_closed"
    FORCE_KILLED = "force_killed"
    NO_PROCESS_FOUND = "no_process_found"
    CLOSE_FAILED = "close_failed"

    @property
    def succeeded(self) -> bool:
        return self in (TerminationOutcome.GRACEFULLY_CLOSED, TerminationOutcome.FORCE_KILLED)


class LaunchClass(Enum):
    PLATFORM = "platform"
    STANDALONE = "standalone"


class StepStatus(Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Result of one isolated orchestrator step."""

    step: str
    status: StepStatus
    reason: str = ""

    @classmethod
    def ok(cls, step: str, reason: str = "") -> "StepResult":
        return cls(step, StepStatus.OK, reason)

    @classmethod
    def skipped(cls, step: str, reason: str) -> "StepResult":
        return cls(step, StepStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, step: str, reason: str) -> "StepResult":
        return cls(step, StepStatus.FAILED, reason)


@dataclass
class EntityCloseResult:
    entity_id: str
    entity_name: str
    outcome: TerminationOutcome
    pid: Optional[int] = None
    state_updated: bool = False


@dataclass
class CloseReport:
    """Everything one close sequence did, in order."""

    entity_id: str
    entity_name: str
    closed: list[EntityCloseResult] = field(default_factory=list)
    steps: list[StepResult] = field(default_factory=list)
    launch_class: Optional[LaunchClass] = None
    launch_delay_seconds: float = 0.0

    def record(self, result: StepResult) -> StepResult:
        self.steps.append(result)
        return result

    @property
    def failures(self) -> list[StepResult]:
        return [step for step in self.steps if step.status is StepStatus.FAILED]

    def outcome_for(self, entity_id: str) -> Optional[TerminationOutcome]:
        for result in self.closed:
            if result.entity_id == entity_id:
                return result.outcome
        return None


__all__ = [
    "ApplicationRecord",
    "CandidatePartition",
    "CloseReport",
    "EntityCloseResult",
    "LaunchAction",
    "LaunchClass",
    "MatchTier",
    "NO_MATCH",
    "ProcessHandle",
    "StepResult",
    "StepStatus",
    "TerminationOutcome",
    "TierMatch",
]
