"""Response cache for alert API data."""

import asyncio
import math
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from cachetools import TLRUCache

from ..config import CacheConfig
from ..utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value with its absolute expiry on the cache's clock (seconds)."""

    value: T
    expires_at: float


def _entry_expiry(_key: str, entry: CacheEntry[Any], _now: float) -> float:
    return entry.expires_at


def _retrieve_exception(task: "asyncio.Task[Any]") -> None:
    # Marks the error as retrieved when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class ResponseCache:
    """In-memory key/value cache where every entry carries its own TTL.

    Uses cachetools.TLRUCache so expired entries are never returned and the
    optional ``max_size`` bound evicts least recently used entries first.
    Keys are colon-delimited strings like 'stocks:all' or 'stock:details:AAPL'.

    The clock is injectable through ``timer`` so tests can simulate time.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize response cache.

        Args:
            config: Cache configuration (defaults to an enabled, unbounded cache)
            timer: Clock returning seconds, used for expiry checks
        """
        self.config = config or CacheConfig()
        self._timer = timer
        maxsize = self.config.max_size if self.config.max_size is not None else math.inf
        self._store: TLRUCache[str, CacheEntry[Any]] = TLRUCache(
            maxsize=maxsize, ttu=_entry_expiry, timer=timer
        )
        self._lock = threading.RLock()
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._epoch = 0
        self._generations: dict[str, int] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "deduplicated": 0,
        }

        logger.info(
            "response_cache_initialized",
            max_size=self.config.max_size,
            enabled=self.config.enabled,
        )

    def _lookup(self, key: str) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._stats["misses"] += 1
                logger.debug("cache_miss", key=key)
                return _MISSING
            self._stats["hits"] += 1
            logger.debug("cache_hit", key=key, hits=self._stats["hits"])
            return entry.value

    def get(self, key: str, default: T | None = None) -> Any | T | None:
        """Get value from cache.

        Args:
            key: Cache key
            default: Returned when the key is absent or expired

        Returns:
            Cached value, or ``default`` if not found/expired
        """
        if not self.config.enabled:
            return default
        value = self._lookup(key)
        return default if value is _MISSING else value

    def entry(self, key: str) -> CacheEntry[Any] | None:
        """Get the live entry for a key without touching hit/miss stats."""
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, value: Any, ttl_minutes: float) -> None:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key
            value: Value to cache
            ttl_minutes: Time to live in minutes
        """
        if not self.config.enabled:
            return
        if ttl_minutes <= 0:
            logger.warning("cache_set_skipped", key=key, ttl_minutes=ttl_minutes)
            with self._lock:
                self._store.pop(key, None)
            return

        with self._lock:
            expires_at = self._timer() + ttl_minutes * 60
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)
        logger.debug("cache_set", key=key, ttl_minutes=ttl_minutes)

    def _generation(self, key: str) -> tuple[int, int]:
        return self._epoch, self._generations.get(key, 0)

    def _invalidate(self, key: str) -> None:
        # Fetches started before this point may still finish, but they can no
        # longer be joined or write their result back.
        self._store.pop(key, None)
        self._in_flight.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1

    def delete(self, key: str) -> None:
        """Remove a key and detach any fetch in flight for it. Missing keys are ignored."""
        with self._lock:
            self._invalidate(key)
        logger.debug("cache_invalidated", key=key)

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``.

        Fetches in flight for matching keys are detached as well.

        Returns:
            Number of stored keys removed
        """
        with self._lock:
            keys = [key for key in list(self._store.keys()) if key.startswith(prefix)]
            pending = [key for key in self._in_flight if key.startswith(prefix)]
            for key in {*keys, *pending}:
                self._invalidate(key)
        logger.debug(
            "cache_prefix_invalidated", prefix=prefix, removed=len(keys), detached=len(pending)
        )
        return len(keys)

    def clear(self) -> None:
        """Remove all entries, detach in-flight fetches and reset statistics."""
        with self._lock:
            self._store.clear()
            self._in_flight.clear()
            self._generations.clear()
            self._epoch += 1
            self._stats = {
                "hits": 0,
                "misses": 0,
                "deduplicated": 0,
            }
        logger.info("cache_cleared")

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)

    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl_minutes: float,
    ) -> T:
        """Get from cache or fetch if not present.

        Concurrent callers for the same key share a single pending fetch.
        Fetch errors propagate to every waiter and nothing is cached. A fetch
        whose key is deleted, prefix-invalidated or cleared while it runs still
        answers its own waiters but is not stored; later callers start anew.

        Args:
            key: Cache key
            fetch_fn: Async function to call on a cache miss
            ttl_minutes: Time to live for the fetched value

        Returns:
            Cached or freshly fetched value
        """
        if not self.config.enabled:
            return await fetch_fn()

        cached = self._lookup(key)
        if cached is not _MISSING:
            result: T = cached
            return result

        with self._lock:
            task = self._in_flight.get(key)
            if task is None:
                logger.debug("cache_fetch", key=key)
                task = asyncio.ensure_future(
                    self._fetch_and_store(key, fetch_fn, ttl_minutes, self._generation(key))
                )
                task.add_done_callback(_retrieve_exception)
                self._in_flight[key] = task
            else:
                self._stats["deduplicated"] += 1
                logger.debug("cache_fetch_joined", key=key)

        return await asyncio.shield(task)

    async def _fetch_and_store(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl_minutes: float,
        generation: tuple[int, int],
    ) -> T:
        try:
            value = await fetch_fn()
            with self._lock:
                if self._generation(key) == generation:
                    self.set(key, value, ttl_minutes)
                else:
                    logger.debug("cache_fetch_discarded", key=key)
            return value
        finally:
            with self._lock:
                if self._in_flight.get(key) is asyncio.current_task():
                    del self._in_flight[key]

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with hits, misses, hit_rate, size and in-flight fetches
        """
        with self._lock:
            total_requests = self._stats["hits"] + self._stats["misses"]
            hit_rate = self._stats["hits"] / total_requests if total_requests > 0 else 0.0

            return {
                "hits": self._stats["hits"],
                "misses": self._stats["misses"],
                "deduplicated": self._stats["deduplicated"],
                "total_requests": total_requests,
                "hit_rate": hit_rate,
                "size": len(self),
                "in_flight": len(self._in_flight),
            }

    def log_stats(self) -> None:
        """Log current cache statistics."""
        stats = self.get_stats()
        logger.info("cache_stats", **stats)
