#!/usr/bin/env python3
"""Resolve a game to its running process and optionally close it.

Usage:
    python -m scripts.find_game_process --name "Foo Bar" --install-dir "C:\\Games\\FooBar"
    python -m scripts.find_game_process --name "Foo Bar" --close --graceful-timeout 5
"""

from __future__ import annotations

import argparse
import logging
import sys

from autoclose.candidate_scorer import classify_process
from autoclose.config.settings import load_settings
from autoclose.executable_names import derive_executable_names
from autoclose.logging_config import setup_logging
from autoclose.models import ApplicationRecord, LaunchAction, TerminationOutcome
from autoclose.process_finder import ProcessFinder
from autoclose.process_terminator import ProcessTerminator

logger = logging.getLogger(__name__)


def build_record(args: argparse.Namespace) -> ApplicationRecord:
    actions = tuple(LaunchAction(name=f"action{index}", path=path) for index, path in enumerate(args.action_path or []))
    return ApplicationRecord(
        id=args.name,
        name=args.name,
        install_directory=args.install_dir,
        launch_actions=actions,
        is_running=True,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Find (and optionally close) the process running a game")
    parser.add_argument("--name", required=True, help="Game display name")
    parser.add_argument("--install-dir", default=None, help="Game install directory")
    parser.add_argument("--action-path", action="append", help="Launch action path (repeatable)")
    parser.add_argument("--pid", type=int, default=None, help="Previously known pid of the game")
    parser.add_argument("--close", action="store_true", help="Close the matched process")
    parser.add_argument("--graceful-timeout", type=float, default=None, help="Seconds to wait for a graceful close")
    parser.add_argument("--verbose", action="store_true", help="Log matching details")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    settings = load_settings()
    record = build_record(args)
    finder = ProcessFinder(settings)
    handle = finder.find(record, previous_pid=args.pid)
    if handle is None:
        print(f"No matching process for {record.name}")
        return 0

    executable_names = derive_executable_names(record.install_directory, suffixes=settings.executable_suffixes)
    match = classify_process(handle, record, executable_names)
    print(
        f"PID {handle.pid}  {handle.name}  tier={match.tier.value}"
        f"{f' score={match.score}' if match.score else ''}  "
        f"memory={handle.resident_memory // (1024 * 1024)}MiB  path={handle.executable_path or '<unknown>'}"
    )
    if not args.close:
        return 0

    terminator = ProcessTerminator(
        finder.window_backend,
        graceful_timeout=args.graceful_timeout if args.graceful_timeout is not None else settings.graceful_timeout_seconds,
        force_timeout=settings.force_kill_timeout_seconds,
    )
    outcome = terminator.terminate_blocking(handle)
    print(f"Outcome: {outcome.value}")
    return 1 if outcome is TerminationOutcome.CLOSE_FAILED else 0


if __name__ == "__main__":
    sys.exit(main())
