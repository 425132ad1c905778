"""Tier classification of live processes against an application record.

Tiers are evaluated in a fixed order and the first hit wins:

1. PATH - the resolved executable path contains the install directory
2. NAME - the bare process name equals a derived executable name
3. TITLE - window title and display name share tokens (score = overlap)
4. INACCESSIBLE - nothing matched and the executable path is unknown

A process with a known path that hits none of these is confidently not the
application and is dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence

import psutil

from .models import NO_MATCH, ApplicationRecord, CandidatePartition, MatchTier, ProcessHandle, TierMatch

logger = logging.getLogger(__name__)

_TOKEN_DELIMITERS = re.compile(r"[ \-_:.()\[\]]+")

_SKIPPABLE_ERRORS = (psutil.Error, OSError, AttributeError, TypeError, ValueError)


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase ``text`` and split it on the title delimiter set, dropping empties."""
    if not text:
        return []
    return [token for token in _TOKEN_DELIMITERS.split(text.lower()) if token]


def title_match_score(name_tokens: Sequence[str], window_title: Optional[str]) -> int:
    """Count display-name tokens found in, or containing, some window-title token."""
    title_tokens = tokenize(window_title)
    if not title_tokens:
        return 0
    return sum(
        1
        for name_token in name_tokens
        if any(name_token in title_token or title_token in name_token for title_token in title_tokens)
    )


def _path_matches(executable_path: Optional[str], install_directory: Optional[str]) -> bool:
    if not executable_path or not install_directory:
        return False
    return install_directory.lower() in executable_path.lower()


def classify_process(
    process: ProcessHandle,
    record: ApplicationRecord,
    executable_names: Iterable[str],
    name_tokens: Optional[Sequence[str]] = None,
) -> TierMatch:
    """Place ``process`` into exactly one tier for ``record``.

    Pure function: reads only the handle's captured attributes, so it can be
    exercised without any live OS process.
    """
    if _path_matches(process.executable_path, record.install_directory):
        return TierMatch(MatchTier.PATH)

    process_name = (process.name or "").lower()
    if process_name and any(process_name == candidate.lower() for candidate in executable_names):
        return TierMatch(MatchTier.NAME)

    tokens = tokenize(record.name) if name_tokens is None else name_tokens
    score = title_match_score(tokens, process.window_title)
    if score > 0:
        return TierMatch(MatchTier.TITLE, score)

    if not process.executable_path:
        return TierMatch(MatchTier.INACCESSIBLE)

    return NO_MATCH


def partition_candidates(
    processes: Iterable[ProcessHandle],
    record: ApplicationRecord,
    executable_names: Sequence[str],
    *,
    log: Optional[logging.Logger] = None,
) -> CandidatePartition:
    """Classify every process and collect the matches into disjoint buckets."""
    log = log or logger
    name_tokens = tokenize(record.name)
    log.debug("Game name for matching: %s, split into %d words", record.name, len(name_tokens))

    partition = CandidatePartition()
    for process in processes:
        try:
            match = classify_process(process, record, executable_names, name_tokens)
        except _SKIPPABLE_ERRORS as exc:  # policy_guard: allow-silent-handler
            log.debug("Skipping process during classification: %s", exc)
            continue
        if match.tier is MatchTier.PATH:
            log.debug("Found process with matching path: %s -> %s", process.name, process.executable_path)
        partition.add(process, match)

    log.debug("Candidate partition for %s: %s", record.name, partition.counts())
    return partition


__all__ = ["classify_process", "partition_candidates", "title_match_score", "tokenize"]
