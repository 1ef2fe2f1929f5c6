from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    value: Any
    inserted_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at > self.ttl


class WeatherCache:
    """Thread-safe TTL cache with expiry-on-read.

    Expired entries are evicted lazily by ``get``; ``cleanup_expired`` sweeps
    everything at once and is only an optimization.
    """

    DEFAULT_TTL = 30 * 60

    def __init__(self, default_ttl: float = DEFAULT_TTL, time_func: Callable[[], float] = time.monotonic) -> None:
        if not math.isfinite(default_ttl) or default_ttl <= 0:
            raise ValueError("default_ttl must be a positive finite number")
        self.default_ttl = default_ttl
        self._time_func = time_func
        self._storage: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._storage.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._time_func()):
                del self._storage[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if not math.isfinite(ttl) or ttl <= 0:
            raise ValueError("ttl must be a positive finite number")
        with self._lock:
            self._storage[key] = CacheEntry(key=key, value=value, inserted_at=self._time_func(), ttl=ttl)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._storage.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()

    def cleanup_expired(self) -> int:
        with self._lock:
            now = self._time_func()
            expired = [key for key, entry in self._storage.items() if entry.is_expired(now)]
            for key in expired:
                del self._storage[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "keys": len(self._storage)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)


class CacheJanitor:
    """Background thread that periodically sweeps expired cache entries."""

    def __init__(self, cache: WeatherCache, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.cache = cache
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="weather-cache-janitor", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.cache.cleanup_expired()

    def __enter__(self) -> "CacheJanitor":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["CacheEntry", "CacheJanitor", "WeatherCache"]
