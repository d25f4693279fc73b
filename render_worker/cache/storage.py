"""Key-value store backends with store-managed expiry.

The artifact cache writes plain string values under flat keys, each with a
time-to-live. Expiry belongs to the store: Redis expires keys natively, and
the in-memory backend treats an expired entry as absent. Expired entries are
dropped when read, and a periodic sweep on write drops the ones nobody reads.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class StoreUnavailableError(CacheUnavailableError):
    """The backing store could not be reached or rejected the operation."""


@dataclass
class StoreEntry:
    """A single stored value with its expiry."""
    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class KeyValueStore(ABC):
    """Abstract base class for TTL key-value stores."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value for ``key``, or None if absent or expired."""
        pass

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``.

        Raises:
            StoreUnavailableError: If the store cannot accept the write
        """
        pass

    async def close(self) -> None:
        """Release any connections held by the backend."""
        return None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, suitable for a single worker and for tests."""

    def __init__(self, clock: Callable[[], float] = time.time, cleanup_interval: float = 60.0):
        """Initialize in-memory store.

        Args:
            clock: Source of the current time in seconds
            cleanup_interval: Minimum seconds between sweeps of expired entries
        """
        self._entries: Dict[str, StoreEntry] = {}
        self._clock = clock
        self.cleanup_interval = cleanup_interval
        self._last_cleanup = clock()

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None

        return entry.value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        if now - self._last_cleanup >= self.cleanup_interval:
            self._cleanup_expired(now)

        self._entries[key] = StoreEntry(value=value, expires_at=now + ttl_seconds)

    def _cleanup_expired(self, now: float) -> int:
        """Drop every expired entry, read or not."""
        expired_keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]

        for key in expired_keys:
            del self._entries[key]

        self._last_cleanup = now
        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired store entries")
        return len(expired_keys)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


class RedisKeyValueStore(KeyValueStore):
    """Redis store; keys expire through Redis ``EX``."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0", key_prefix: str = "", client=None):
        """Initialize Redis store.

        Args:
            redis_url: Connection URL
            key_prefix: Prefix applied to every key
            client: Pre-built ``redis.asyncio.Redis`` client, mainly for tests
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._redis = client

    def _get_redis(self):
        if self._redis is None:
            self._redis = redis.from_url(self.redis_url, decode_responses=True)
        return self._redis

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._get_redis().get(self._key(key))
        except RedisError as e:
            logger.error(f"Error reading {key} from Redis: {e}")
            raise StoreUnavailableError(f"Cache store unavailable: {e}")

        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._get_redis().set(self._key(key), value, ex=ttl_seconds)
        except RedisError as e:
            logger.error(f"Error writing {key} to Redis: {e}")
            raise StoreUnavailableError(f"Cache store unavailable: {e}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def create_store(settings) -> KeyValueStore:
    """Create a store from the ``cache`` section of WorkerConfig."""
    if settings.backend == "redis":
        logger.info(f"Using Redis artifact store at {settings.redis_url}")
        return RedisKeyValueStore(settings.redis_url, key_prefix=settings.key_prefix)

    logger.info("Using in-memory artifact store")
    return InMemoryKeyValueStore(cleanup_interval=settings.cleanup_interval_seconds)
