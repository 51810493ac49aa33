# krishipulse/utils/cache.py
import asyncio
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional

from ..config import settings

log = logging.getLogger("krishipulse.cache")


class _Entry(NamedTuple):
    value: Any
    expires_at: Optional[float]   # None = never

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class SimpleTTLCache:
    """
    Thread-safe in-memory map with per-key expiry.

    Expired entries are dropped lazily on read and in bulk by `sweep()`.
    `clock` defaults to time.monotonic so wall-clock jumps never
    resurrect or kill entries.
    """

    def __init__(self, default_ttl: Optional[float] = 600,
                 clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, _Entry] = {}
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expired(self._clock()):
                del self._entries[key]
                return default
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        expires_at = None if ttl is None else self._clock() + ttl
        with self._lock:
            self._entries[key] = _Entry(value, expires_at)

    def pop_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> Iterable[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def sweep(self) -> int:
        """Drop every expired entry; returns how many went."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if e.expired(now)]
            for k in stale:
                del self._entries[k]
        return len(stale)


cache = SimpleTTLCache()

# Forecasts go stale within hours, geocodes essentially never.
CACHE_TTL = {
    "weather": settings.WEATHER_CACHE_TTL_SEC,
    "geocode": settings.GEOCODE_CACHE_TTL_SEC,
    "default": 3600,
}

_sweeper: Optional[asyncio.Task] = None


def ttl_for(cache_type: str) -> int:
    return int(CACHE_TTL.get(cache_type, CACHE_TTL["default"]))


async def _sweep_forever(every: float):
    while True:
        await asyncio.sleep(every)
        n = cache.sweep()
        if n:
            log.info("cache sweep dropped %d expired keys", n)


async def init_cache():
    global _sweeper
    if _sweeper is None or _sweeper.done():
        _sweeper = asyncio.create_task(_sweep_forever(settings.CACHE_SWEEP_SEC))
    log.info("cache ready (in-memory, sweep every %ds)", settings.CACHE_SWEEP_SEC)


async def close_cache():
    global _sweeper
    if _sweeper is not None:
        _sweeper.cancel()
        _sweeper = None


# --- JSON helpers used by the weather and geocoding clients ---

async def get_json(key: str, cache_type: str = "default") -> Optional[Any]:
    val = cache.get(key)
    if val is not None:
        log.debug("%s cache hit: %s", cache_type, key)
    return val


async def set_json(key: str, val: Any, cache_type: str = "default"):
    ttl = ttl_for(cache_type)
    cache.set(key, val, ttl=ttl)
    log.debug("%s cached for %ds: %s", cache_type, ttl, key)


def flush_prefix(prefix: str) -> int:
    """Forget every key under `prefix` ('wx:', 'geo:', ...); returns the count."""
    n = cache.pop_prefix(prefix)
    if n:
        log.info("flushed %d cache keys under %r", n, prefix)
    return n
