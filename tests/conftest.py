"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from autoclose.config import runtime
from autoclose.config.settings import AutoCloseSettings
from tests.helpers.fake_redis import FakeRedis
from tests.helpers.process_fakes import FakeWindowBackend


@pytest.fixture(autouse=True)
def _isolate_config_defaults(monkeypatch):
    """Keep developer .env / JSON defaults out of tests."""
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})
    yield
    runtime.reset_default_values()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``."""
    return FakeRedis()


@pytest.fixture
def window_backend() -> FakeWindowBackend:
    return FakeWindowBackend()


@pytest.fixture
def fast_settings() -> AutoCloseSettings:
    """Settings with every delay zeroed so sequences run instantly."""
    return AutoCloseSettings(
        graceful_timeout_seconds=0.01,
        force_kill_timeout_seconds=0.01,
        pre_close_delay_ms=0,
        graceful_close_delay_ms=0,
        platform_start_delay_ms=0,
        standalone_start_delay_ms=0,
        process_cleanup_wait_ms=0,
    )
