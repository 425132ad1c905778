"""Running-entity stores: the host library's view of which games are running.

The engine reads the running set once per close sequence and issues point
updates afterwards. Stores own their own consistency; every operation is
best effort and reports failure through its return value.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Protocol

import orjson
import redis.asyncio
from redis.exceptions import RedisError

from .config.settings import RedisStoreSettings, get_redis_store_settings
from .errors import EntityStoreError
from .models import ApplicationRecord, LaunchAction

logger = logging.getLogger(__name__)


class EntityStore(Protocol):
    async def list_running(self, exclude_id: Optional[str] = None) -> List[ApplicationRecord]: ...

    async def set_running(self, entity_id: str, running: bool) -> bool: ...

    async def touch_last_activity(self, entity_id: str) -> bool: ...

    async def close(self) -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryEntityStore:
    """Dictionary-backed store for hosts that keep their library in process."""

    def __init__(self, records: Iterable[ApplicationRecord] = ()) -> None:
        self._records: Dict[str, ApplicationRecord] = {record.id: record for record in records}
        self._lock = asyncio.Lock()

    def get(self, entity_id: str) -> Optional[ApplicationRecord]:
        return self._records.get(entity_id)

    async def register(self, record: ApplicationRecord) -> None:
        async with self._lock:
            self._records[record.id] = record

    async def list_running(self, exclude_id: Optional[str] = None) -> List[ApplicationRecord]:
        async with self._lock:
            return [record for record in self._records.values() if record.is_running and record.id != exclude_id]

    async def set_running(self, entity_id: str, running: bool) -> bool:
        async with self._lock:
            record = self._records.get(entity_id)
            if record is None:
                logger.warning("Cannot update running state of unknown entity %s", entity_id)
                return False
            self._records[entity_id] = replace(record, is_running=running)
            return True

    async def touch_last_activity(self, entity_id: str) -> bool:
        async with self._lock:
            record = self._records.get(entity_id)
            if record is None:
                logger.warning("Cannot update last activity of unknown entity %s", entity_id)
                return False
            self._records[entity_id] = replace(record, last_activity=_now())
            return True

    async def close(self) -> None:
        """Nothing to release; present for the store protocol."""


def _decode(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisEntityStore:
    """
    Redis-backed store shared between the host and the engine.

    Layout:
        ``<prefix>:entity:<id>`` hash with ``name``, ``install_directory``,
        ``source``, ``launch_actions`` (JSON list), ``is_running`` ("1"/"0")
        and ``last_activity`` (ISO 8601)

        ``<prefix>:running`` set of running entity ids
    """

    def __init__(self, client=None, *, settings: Optional[RedisStoreSettings] = None) -> None:
        self._settings = settings or get_redis_store_settings()
        self._client = client
        self._owns_client = client is None
        self._client_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def running_key(self) -> str:
        return f"{self._settings.key_prefix}:running"

    def entity_key(self, entity_id: str) -> str:
        return f"{self._settings.key_prefix}:entity:{entity_id}"

    def _redis(self):
        """
        Return a client usable on the running loop.

        An owned client is tied to the loop that created it; a call from a
        different loop replaces it, since its connections cannot be reused.
        """
        if not self._owns_client:
            return self._client
        loop = asyncio.get_running_loop()
        if self._client is not None and self._client_loop is not loop:
            logger.debug("Discarding Redis client bound to a previous event loop")
            self._client = None
        if self._client is None:
            self._client = redis.asyncio.Redis.from_url(self._settings.url, decode_responses=True)
            self._client_loop = loop
        return self._client

    async def close(self) -> None:
        """Close the owned client; an injected client stays open for its owner."""
        if not self._owns_client or self._client is None:
            return
        client, self._client, self._client_loop = self._client, None, None
        await client.aclose()

    async def register(self, record: ApplicationRecord) -> None:
        """
        Write ``record`` and its running flag.

        Raises:
            EntityStoreError: If Redis rejects the write
        """
        client = self._redis()
        try:
            await client.hset(self.entity_key(record.id), mapping=self._serialize(record))
            if record.is_running:
                await client.sadd(self.running_key, record.id)
            else:
                await client.srem(self.running_key, record.id)
        except (RedisError, OSError) as exc:
            raise EntityStoreError("register", record.id, reason=str(exc)) from exc

    async def list_running(self, exclude_id: Optional[str] = None) -> List[ApplicationRecord]:
        client = self._redis()
        try:
            running_ids = sorted(_decode(raw) for raw in await client.smembers(self.running_key))
            records: List[ApplicationRecord] = []
            for entity_id in running_ids:
                if entity_id == exclude_id:
                    continue
                payload = await client.hgetall(self.entity_key(entity_id))
                if not payload:
                    logger.debug("Running set references missing entity %s", entity_id)
                    continue
                records.append(self._deserialize(entity_id, payload))
        except (RedisError, OSError, ValueError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Failed to list running entities from Redis: %s", exc)
            return []
        return records

    async def set_running(self, entity_id: str, running: bool) -> bool:
        client = self._redis()
        try:
            await client.hset(self.entity_key(entity_id), mapping={"is_running": "1" if running else "0"})
            if running:
                await client.sadd(self.running_key, entity_id)
            else:
                await client.srem(self.running_key, entity_id)
        except (RedisError, OSError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Failed to set running=%s for %s: %s", running, entity_id, exc)
            return False
        return True

    async def touch_last_activity(self, entity_id: str) -> bool:
        client = self._redis()
        try:
            await client.hset(self.entity_key(entity_id), mapping={"last_activity": _now().isoformat()})
        except (RedisError, OSError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Failed to update last activity for %s: %s", entity_id, exc)
            return False
        return True

    @staticmethod
    def _serialize(record: ApplicationRecord) -> Dict[str, str]:
        actions = [{"name": action.name, "path": action.path} for action in record.launch_actions]
        return {
            "name": record.name,
            "install_directory": record.install_directory or "",
            "source": record.source or "",
            "launch_actions": orjson.dumps(actions).decode("utf-8"),
            "is_running": "1" if record.is_running else "0",
            "last_activity": record.last_activity.isoformat() if record.last_activity else "",
        }

    @staticmethod
    def _deserialize(entity_id: str, payload: Dict) -> ApplicationRecord:
        fields = {_decode(key): _decode(value) for key, value in payload.items()}
        raw_actions = fields.get("launch_actions") or "[]"
        actions = tuple(
            LaunchAction(name=item.get("name") or "", path=item.get("path")) for item in orjson.loads(raw_actions)
        )
        last_activity = fields.get("last_activity")
        return ApplicationRecord(
            id=entity_id,
            name=fields.get("name", ""),
            install_directory=fields.get("install_directory") or None,
            launch_actions=actions,
            source=fields.get("source") or None,
            is_running=fields.get("is_running") == "1",
            last_activity=datetime.fromisoformat(last_activity) if last_activity else None,
        )


__all__ = ["EntityStore", "InMemoryEntityStore", "RedisEntityStore"]
