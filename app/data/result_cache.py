import asyncio
import copy
import logging
import time
from contextlib import suppress
from typing import Any, Callable, NamedTuple, Optional

from cachetools import TLRUCache

from ..utils import log_operation, log_error

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600
DEFAULT_CHECK_PERIOD = 120
DEFAULT_MAX_SIZE = 1024


class _CacheItem(NamedTuple):
    value: Any
    ttl: float


def build_cache_key(
    video_id: str,
    language: str,
    skip_refinement: bool = False,
    generate_article: bool = False,
    allow_placeholder: bool = False,
    prefer_alternative: bool = False,
    prefix: str = "process",
) -> str:
    """
    Build a deterministic cache key from the video ID and every option that changes the output.

    Example:
        >>> build_cache_key("dQw4w9WgXcQ", "en", skip_refinement=True)
        'process:dQw4w9WgXcQ:en:1:0:0:0'
    """
    flags = [skip_refinement, generate_article, allow_placeholder, prefer_alternative]
    return ":".join([prefix, video_id, language] + [str(int(bool(f))) for f in flags])


class ResultCache:
    """
    Process-wide in-memory cache of pipeline results with per-entry expiry.

    Entries expire independently. Expired entries are dropped lazily on read
    and by a background sweep task that runs every ``check_period`` seconds
    while the application is up. Values are deep-copied in and out so a stored
    entry never changes after insertion.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        check_period: float = DEFAULT_CHECK_PERIOD,
        maxsize: int = DEFAULT_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.check_period = check_period
        self._cache = TLRUCache(
            maxsize=maxsize, ttu=self._time_to_use, timer=timer
        )
        self._sweeper: Optional[asyncio.Task] = None

    @staticmethod
    def _time_to_use(key: str, item: _CacheItem, now: float) -> float:
        return now + item.ttl

    def get(self, key: str) -> Optional[Any]:
        """Return a copy of the cached value, or None on a miss or expired entry."""
        self._cache.expire()
        item = self._cache.get(key)
        if item is None:
            return None
        return copy.deepcopy(item.value)

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.ttl if ttl is None else ttl
        self._cache[key] = _CacheItem(copy.deepcopy(value), ttl)

    def sweep(self) -> int:
        """Remove expired entries and return how many were removed."""
        removed = len(self._cache.expire())
        if removed:
            log_operation(logger, "cache_sweep", {"removed": removed, "remaining": len(self._cache)})
        return removed

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    # =============================================================================
    # BACKGROUND SWEEP
    # =============================================================================

    def start_sweeper(self) -> None:
        """Start the periodic sweep task on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_periodically())

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None

    async def _sweep_periodically(self) -> None:
        while True:
            await asyncio.sleep(self.check_period)
            try:
                self.sweep()
            except Exception as e:
                log_error(logger, "cache_sweep", e)
