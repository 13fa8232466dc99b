"""
Plugin Result Cache

In-memory TTL cache for analysis and AI assessment results. Entries are
invalidated by age only. Concurrent requests for the same key share one
in-flight computation instead of each invoking the plugin.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from core.logging import get_logger
from core.metrics import metrics
from core.retry import Deadline

logger = get_logger(__name__, domain="d1")


def _retrieve_exception(task: asyncio.Task) -> None:
    # a failure nobody waited for must not be reported as never retrieved
    if not task.cancelled():
        task.exception()


@dataclass
class CacheEntry:
    """Cached result with the time it was stored"""

    result: Any
    timestamp: float

    def is_expired(self, ttl_seconds: float, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        return now - self.timestamp >= ttl_seconds


@dataclass
class CacheStats:
    """Cache statistics for monitoring"""

    hits: int = 0
    misses: int = 0
    expired_removals: int = 0
    shared_inflight: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return (self.hits / total) if total > 0 else 0.0


class ResultCache:
    """TTL cache with single-flight computation per key"""

    def __init__(self, ttl_seconds: float = 300.0, enabled: bool = True):
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._stats = CacheStats()

    @property
    def size(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Return a fresh cached result or None"""
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            metrics.track_cache_miss("plugin")
            return None

        if entry.is_expired(self.ttl_seconds):
            del self._entries[key]
            self._stats.expired_removals += 1
            self._stats.misses += 1
            metrics.track_cache_miss("plugin")
            logger.debug(f"Cache entry {key} expired")
            return None

        self._stats.hits += 1
        metrics.track_cache_hit("plugin")
        logger.debug(f"Cache hit for key {key}")
        return entry.result

    def put(self, key: str, result: Any) -> None:
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(result=result, timestamp=time.monotonic())

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        deadline: Optional[Deadline] = None,
    ) -> Any:
        """
        Return the cached result for key, computing it at most once at a time

        The computation runs as its own task, detached from any one caller.
        Each caller waits on it under its own deadline, so a caller that times
        out or is cancelled leaves the computation running for the others. A
        failed computation is not cached; every waiter sees the same error.
        """
        deadline = deadline or Deadline.none()
        if not self.enabled:
            return await deadline.run(compute())

        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute(key, compute))
            task.add_done_callback(_retrieve_exception)
            self._inflight[key] = task
        else:
            self._stats.shared_inflight += 1
            logger.debug(f"Joining in-flight computation for {key}")

        return await deadline.run(asyncio.shield(task))

    async def _compute(self, key: str, compute: Callable[[], Awaitable[Any]]) -> Any:
        try:
            result = await compute()
            self.put(key, result)
            return result
        finally:
            self._inflight.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Plugin result cache cleared")

    def stats(self) -> CacheStats:
        return self._stats
