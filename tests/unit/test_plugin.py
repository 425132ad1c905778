import threading
from dataclasses import replace

import pytest

from autoclose.config import ConfigurationError
from autoclose.entity_store import InMemoryEntityStore
from autoclose.models import CloseReport
from autoclose.plugin import AutoClosePlugin
from tests.helpers.process_fakes import make_record


def test_disabled_plugin_does_nothing(fast_settings, window_backend):
    store = InMemoryEntityStore([make_record("New", entity_id="new"), make_record("Old", entity_id="old")])
    plugin = AutoClosePlugin(store, settings=replace(fast_settings, enable_auto_close=False), window_backend=window_backend)

    assert plugin.on_entity_starting(make_record("New", entity_id="new")) is None
    assert store.get("old").is_running is True


def test_starting_event_runs_close_sequence(fast_settings, window_backend):
    store = InMemoryEntityStore([make_record("New", entity_id="new")])
    plugin = AutoClosePlugin(store, settings=fast_settings, window_backend=window_backend)

    report = plugin.on_entity_starting(make_record("New", entity_id="new"))

    assert isinstance(report, CloseReport)
    assert report.closed == []


def test_unresolvable_game_left_running(fast_settings, window_backend):
    store = InMemoryEntityStore([make_record("New", entity_id="new"), make_record("Old", entity_id="old")])
    plugin = AutoClosePlugin(store, settings=fast_settings, window_backend=window_backend)

    report = plugin.on_entity_starting(make_record("New", entity_id="new"))

    assert report.closed[0].entity_id == "old"
    assert report.closed[0].state_updated is False
    assert store.get("old").is_running is True


def test_update_settings_rebuilds_orchestrator(fast_settings, window_backend):
    plugin = AutoClosePlugin(InMemoryEntityStore(), settings=fast_settings, window_backend=window_backend)
    updated = replace(fast_settings, show_notifications=False)

    plugin.update_settings(updated)

    assert plugin.settings is updated
    assert plugin._orchestrator.settings is updated


def test_settings_loaded_from_environment_when_omitted(monkeypatch, window_backend):
    monkeypatch.setenv("AUTOCLOSE_ENABLED", "false")

    plugin = AutoClosePlugin(InMemoryEntityStore(), window_backend=window_backend)

    assert plugin.settings.enable_auto_close is False


def test_invalid_environment_settings_raise(monkeypatch, window_backend):
    monkeypatch.setenv("AUTOCLOSE_PROCESS_CLEANUP_WAIT_MS", "-5")

    with pytest.raises(ConfigurationError):
        AutoClosePlugin(InMemoryEntityStore(), window_backend=window_backend)


def test_sequence_started_after_settings_edit_waits_for_running_one(fast_settings, window_backend):
    store = InMemoryEntityStore([make_record("New", entity_id="new")])
    plugin = AutoClosePlugin(store, settings=fast_settings, window_backend=window_backend)
    running_sequence = plugin._orchestrator._sequence_lock
    running_sequence.acquire()
    reports = []
    try:
        plugin.update_settings(replace(fast_settings, show_notifications=False))
        waiter = threading.Thread(target=lambda: reports.append(plugin.on_entity_starting(make_record("New", entity_id="new"))))
        waiter.start()
        waiter.join(0.2)
        assert waiter.is_alive()
    finally:
        running_sequence.release()

    waiter.join(5)
    assert not waiter.is_alive()
    assert len(reports) == 1
