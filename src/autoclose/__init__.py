"""Resolve running games to OS processes and close them before a new game starts."""

from .close_orchestrator import CloseOrchestrator
from .config.settings import AutoCloseSettings, load_settings
from .entity_store import EntityStore, InMemoryEntityStore, RedisEntityStore
from .models import (
    ApplicationRecord,
    CloseReport,
    LaunchAction,
    LaunchClass,
    MatchTier,
    ProcessHandle,
    TerminationOutcome,
)
from .plugin import AutoClosePlugin
from .process_finder import ProcessFinder
from .process_terminator import ProcessTerminator

__all__ = [
    "ApplicationRecord",
    "AutoClosePlugin",
    "AutoCloseSettings",
    "CloseOrchestrator",
    "CloseReport",
    "EntityStore",
    "InMemoryEntityStore",
    "LaunchAction",
    "LaunchClass",
    "MatchTier",
    "ProcessFinder",
    "ProcessHandle",
    "ProcessTerminator",
    "RedisEntityStore",
    "TerminationOutcome",
    "load_settings",
]
