import json
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Protocol

from loguru import logger

from gallery.core.exceptions.rate_limiter import RateLimitStoreUnavailable
from gallery.services.cache.base import BaseRedisClient

Clock = Callable[[], float]


@dataclass(frozen=True)
class WindowRecord:
    """Fixed window counter, reset_at is an epoch timestamp in milliseconds"""

    count: int
    reset_at: int

    def dumps(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def loads(cls, raw: str | bytes | None) -> "WindowRecord | None":
        """Decode a stored record, anything unreadable counts as no record"""
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            return cls(count=int(data["count"]), reset_at=int(data["reset_at"]))
        except (ValueError, TypeError, KeyError):
            logger.debug(f"Discarding malformed rate limit record: {raw!r}")
            return None


class WindowStore(Protocol):
    """Key-value store holding serialized window records with a per-key TTL"""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisWindowStore(BaseRedisClient):
    """
    Shared window store on Redis.

    Reads go straight to the server (plain GET, no client side caching) so
    every edge worker sees the latest count. Writes use SET with EX so that
    Redis purges records once their window is over.
    """

    def _client(self):
        if self.redis_client is None:
            raise RateLimitStoreUnavailable("Redis client is not initialized")

        return self.redis_client

    async def get(self, key: str) -> str | None:
        value = await self._client().get(key)
        if isinstance(value, bytes):
            return value.decode()

        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client().set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._client().delete(key)


class MemoryWindowStore:
    """
    Process-local window store used when the shared store is unavailable.

    Starts empty with the process and is never shared between workers.
    Expired entries are evicted lazily: every read scans the whole map,
    which stays cheap because the fallback only runs while Redis is down.
    """

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self) -> None:
        now = self._clock()
        for key in [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]:
            del self._entries[key]

    async def get(self, key: str) -> str | None:
        self._evict_expired()
        entry = self._entries.get(key)

        return entry[0] if entry else None

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
