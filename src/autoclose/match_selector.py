"""Deterministic pick of the single best process from a candidate partition."""

from __future__ import annotations

import logging
from typing import Optional

from .models import CandidatePartition, ProcessHandle

logger = logging.getLogger(__name__)


def _largest_memory(processes: list[ProcessHandle]) -> ProcessHandle:
    # sorted() is stable, so equal memory keeps snapshot order
    return sorted(processes, key=lambda proc: proc.resident_memory, reverse=True)[0]


def select_best_match(
    partition: CandidatePartition,
    previous_pid: Optional[int] = None,
    *,
    log: Optional[logging.Logger] = None,
) -> Optional[ProcessHandle]:
    """
    Return the winning process, or ``None`` when every bucket is empty.

    Path beats name beats title beats inaccessible. Path and name ties go to
    the largest resident memory; title ties go to the higher score, then
    memory. In the inaccessible pool a ``previous_pid`` that is present wins
    outright.
    """
    log = log or logger

    if partition.path:
        best = _largest_memory(partition.path)
        log.debug("Found process with matching path: %s (ID: %s)", best.name, best.pid)
        return best

    if partition.name:
        best = _largest_memory(partition.name)
        log.debug("Found process with matching name: %s (ID: %s)", best.name, best.pid)
        return best

    if partition.title:
        ranked = sorted(partition.title, key=lambda item: (item[1], item[0].resident_memory), reverse=True)
        best = ranked[0][0]
        log.debug(
            "Found process with matching window title: %s (ID: %s, Title: %s)",
            best.name,
            best.pid,
            best.window_title,
        )
        return best

    if partition.inaccessible:
        if previous_pid is not None:
            for process in partition.inaccessible:
                if process.pid == previous_pid:
                    log.debug("Found original process: %s (ID: %s)", process.name, process.pid)
                    return process
        best = _largest_memory(partition.inaccessible)
        log.debug("Best guess from inaccessible processes: %s (ID: %s)", best.name, best.pid)
        return best

    return None


__all__ = ["select_best_match"]
