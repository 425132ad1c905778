"""Settings dataclasses for the auto-close engine and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from . import ConfigurationError, env_bool, env_float, env_int, env_list, env_str

MEBIBYTE = 1024 * 1024

DEFAULT_GRACEFUL_TIMEOUT_SECONDS = 10.0
DEFAULT_FORCE_KILL_TIMEOUT_SECONDS = 3.0
DEFAULT_PRE_CLOSE_DELAY_MS = 500
DEFAULT_GRACEFUL_CLOSE_DELAY_MS = 0
DEFAULT_PLATFORM_START_DELAY_MS = 50
DEFAULT_STANDALONE_START_DELAY_MS = 400
DEFAULT_PROCESS_CLEANUP_WAIT_MS = 1000
DEFAULT_MIN_RESIDENT_MEMORY_MB = 100
DEFAULT_EXECUTABLE_SUFFIXES: tuple[str, ...] = (".exe",)
DEFAULT_PLATFORM_MARKERS: tuple[str, ...] = ("steam",)


@dataclass(frozen=True)
class AutoCloseSettings:
    """User-tunable behaviour of the close sequence.

    Millisecond fields mirror what the host's settings UI edits; the
    ``*_seconds`` properties convert them for ``asyncio.sleep``.
    """

    enable_auto_close: bool = True
    graceful_timeout_seconds: float = DEFAULT_GRACEFUL_TIMEOUT_SECONDS
    force_kill_timeout_seconds: float = DEFAULT_FORCE_KILL_TIMEOUT_SECONDS
    show_notifications: bool = True
    pre_close_delay_ms: int = DEFAULT_PRE_CLOSE_DELAY_MS
    graceful_close_delay_ms: int = DEFAULT_GRACEFUL_CLOSE_DELAY_MS
    platform_start_delay_ms: int = DEFAULT_PLATFORM_START_DELAY_MS
    standalone_start_delay_ms: int = DEFAULT_STANDALONE_START_DELAY_MS
    process_cleanup_wait_ms: int = DEFAULT_PROCESS_CLEANUP_WAIT_MS
    min_resident_memory_bytes: int = DEFAULT_MIN_RESIDENT_MEMORY_MB * MEBIBYTE
    executable_suffixes: tuple[str, ...] = field(default=DEFAULT_EXECUTABLE_SUFFIXES)
    platform_markers: tuple[str, ...] = field(default=DEFAULT_PLATFORM_MARKERS)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject negative timeouts, delays and thresholds."""
        for name in (
            "graceful_timeout_seconds",
            "force_kill_timeout_seconds",
            "pre_close_delay_ms",
            "graceful_close_delay_ms",
            "platform_start_delay_ms",
            "standalone_start_delay_ms",
            "process_cleanup_wait_ms",
            "min_resident_memory_bytes",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError.invalid_value(name, value, "Must be non-negative")

    @property
    def pre_close_delay_seconds(self) -> float:
        return self.pre_close_delay_ms / 1000.0

    @property
    def graceful_close_delay_seconds(self) -> float:
        return self.graceful_close_delay_ms / 1000.0

    @property
    def platform_start_delay_seconds(self) -> float:
        return self.platform_start_delay_ms / 1000.0

    @property
    def standalone_start_delay_seconds(self) -> float:
        return self.standalone_start_delay_ms / 1000.0

    @property
    def process_cleanup_wait_seconds(self) -> float:
        return self.process_cleanup_wait_ms / 1000.0


def _normalize_suffixes(raw: tuple[str, ...]) -> tuple[str, ...]:
    suffixes = []
    for item in raw:
        lowered = item.lower()
        suffixes.append(lowered if lowered.startswith(".") else f".{lowered}")
    return tuple(suffixes)


def load_settings() -> AutoCloseSettings:
    """Build settings from ``AUTOCLOSE_*`` environment variables and config files."""

    memory_mb = env_int("AUTOCLOSE_MIN_RESIDENT_MEMORY_MB", or_value=DEFAULT_MIN_RESIDENT_MEMORY_MB)
    suffixes = env_list("AUTOCLOSE_EXECUTABLE_SUFFIXES", or_value=DEFAULT_EXECUTABLE_SUFFIXES)
    markers = env_list("AUTOCLOSE_PLATFORM_MARKERS", or_value=DEFAULT_PLATFORM_MARKERS)

    return AutoCloseSettings(
        enable_auto_close=bool(env_bool("AUTOCLOSE_ENABLED", or_value=True)),
        graceful_timeout_seconds=float(
            env_float("AUTOCLOSE_GRACEFUL_TIMEOUT_SECONDS", or_value=DEFAULT_GRACEFUL_TIMEOUT_SECONDS)
        ),
        force_kill_timeout_seconds=float(
            env_float("AUTOCLOSE_FORCE_KILL_TIMEOUT_SECONDS", or_value=DEFAULT_FORCE_KILL_TIMEOUT_SECONDS)
        ),
        show_notifications=bool(env_bool("AUTOCLOSE_SHOW_NOTIFICATIONS", or_value=True)),
        pre_close_delay_ms=int(env_int("AUTOCLOSE_PRE_CLOSE_DELAY_MS", or_value=DEFAULT_PRE_CLOSE_DELAY_MS)),
        graceful_close_delay_ms=int(
            env_int("AUTOCLOSE_GRACEFUL_CLOSE_DELAY_MS", or_value=DEFAULT_GRACEFUL_CLOSE_DELAY_MS)
        ),
        platform_start_delay_ms=int(
            env_int("AUTOCLOSE_PLATFORM_START_DELAY_MS", or_value=DEFAULT_PLATFORM_START_DELAY_MS)
        ),
        standalone_start_delay_ms=int(
            env_int("AUTOCLOSE_STANDALONE_START_DELAY_MS", or_value=DEFAULT_STANDALONE_START_DELAY_MS)
        ),
        process_cleanup_wait_ms=int(
            env_int("AUTOCLOSE_PROCESS_CLEANUP_WAIT_MS", or_value=DEFAULT_PROCESS_CLEANUP_WAIT_MS)
        ),
        min_resident_memory_bytes=int(memory_mb) * MEBIBYTE,
        executable_suffixes=_normalize_suffixes(tuple(suffixes or DEFAULT_EXECUTABLE_SUFFIXES)),
        platform_markers=tuple(marker.lower() for marker in (markers or DEFAULT_PLATFORM_MARKERS)),
    )


@dataclass(frozen=True)
class RedisStoreSettings:
    url: str
    key_prefix: str


@lru_cache(maxsize=1)
def get_redis_store_settings() -> RedisStoreSettings:
    url = env_str("AUTOCLOSE_REDIS_URL", or_value="redis://localhost:6379/0")
    prefix = env_str("AUTOCLOSE_REDIS_PREFIX", or_value="autoclose")
    if not url:
        raise ConfigurationError.missing_value("AUTOCLOSE_REDIS_URL")
    if not prefix:
        raise ConfigurationError.missing_value("AUTOCLOSE_REDIS_PREFIX")
    return RedisStoreSettings(url=url, key_prefix=prefix)


__all__ = [
    "AutoCloseSettings",
    "MEBIBYTE",
    "RedisStoreSettings",
    "get_redis_store_settings",
    "load_settings",
]
