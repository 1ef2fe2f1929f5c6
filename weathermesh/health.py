"""In-memory health registry for provider failures and cache statistics.

The aggregation engine reports every provider failure or timeout here; the
weather service folds in cache counters when a diagnostics snapshot is taken.
"""
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, Mapping, Optional


@dataclass(frozen=True)
class CacheStats:
    """Simple container for cache related counters."""

    hits: int = 0
    misses: int = 0
    keys: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "keys": self.keys}


class HealthRegistry:
    """Stores provider error/timeout counters and cache stats."""

    def __init__(self) -> None:
        self._provider_errors: Dict[str, int] = {}
        self._provider_timeouts: Dict[str, int] = {}
        self._cache_stats: CacheStats = CacheStats()
        self._lock = Lock()

    # -- Provider failures --------------------------------------------------
    def record_provider_error(self, provider: str, increment: int = 1) -> None:
        self._increment(self._provider_errors, provider, increment)

    def record_provider_timeout(self, provider: str, increment: int = 1) -> None:
        self._increment(self._provider_timeouts, provider, increment)

    def _increment(self, counters: Dict[str, int], provider: str, increment: int) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        if increment <= 0:
            raise ValueError("increment must be positive")
        with self._lock:
            counters[provider] = counters.get(provider, 0) + increment

    # -- Cache stats --------------------------------------------------------
    def set_cache_stats(self, stats: Optional[Mapping[str, int]]) -> None:
        if not stats:
            self._cache_stats = CacheStats()
            return
        hits = int(stats.get("hits", 0))
        misses = int(stats.get("misses", 0))
        keys = int(stats.get("keys", 0))
        self._cache_stats = CacheStats(hits=hits, misses=misses, keys=keys)

    # -- Snapshot -----------------------------------------------------------
    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            errors = dict(self._provider_errors)
            timeouts = dict(self._provider_timeouts)
            cache = self._cache_stats.as_dict()
        return {"providers": {"errors": errors, "timeouts": timeouts}, "cache": cache}


__all__ = ["CacheStats", "HealthRegistry"]
