"""Member lookup cache backends (Redis or in-process)."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

from pivotal_bridge.core.config import Settings
from pivotal_bridge.integrations.projects.base import MemberCacheError

logger = logging.getLogger(__name__)


def member_key(project_id: str | int, user_id: str | int) -> str:
    """Cache key for a person's membership in a project."""
    return f"{project_id}/{user_id}"


class MemberCache(ABC):
    """Key/value store of serialized memberships with per-key expiry."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""

    async def close(self) -> None:  # noqa: B027
        """Release the backend connection (no-op default)."""


class InMemoryMemberCache(MemberCache):
    """Process-local cache. Expired entries are dropped on read and on write."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        self._entries[key] = (value, now + ttl_seconds)

    def __len__(self) -> int:
        return len(self._entries)


class RedisMemberCache(MemberCache):
    """Redis-backed cache; expiry is delegated to Redis (SET ... EX)."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisMemberCache:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as e:
            raise MemberCacheError(f"redis GET {key} failed: {e}") from e
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise MemberCacheError(f"redis SET {key} failed: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()


def build_member_cache(config: Settings) -> MemberCache:
    """Redis when a URL is configured, otherwise an in-process cache."""
    if config.redis_url:
        logger.info("Member cache backed by Redis")
        return RedisMemberCache.from_url(config.redis_url)
    logger.warning("REDIS_URL not set; member cache is process-local")
    return InMemoryMemberCache()
