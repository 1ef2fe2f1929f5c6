"""Per-provider minimum-interval rate limiting."""
from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Union

from ..entities import ProviderId


logger = logging.getLogger(__name__)

ProviderKey = Union[ProviderId, str]


def _provider_name(provider: ProviderKey) -> str:
    if isinstance(provider, ProviderId):
        return provider.value
    return str(provider)


class RateLimiter:
    """Enforce a minimum delay between successive calls to the same provider.

    Callers for one provider are serialized by that provider's lock, which is
    held across the check, the sleep and the update. The shared map is only
    touched under ``_guard`` so different providers never wait on each other.
    """

    def __init__(
        self,
        min_delay: float,
        time_func: Callable[[], float] = time.monotonic,
        sleep_func: Callable[[float], None] = time.sleep,
    ) -> None:
        if not math.isfinite(min_delay) or min_delay < 0:
            raise ValueError("min_delay must be a non-negative finite number")
        self.min_delay = min_delay
        self._time_func = time_func
        self._sleep_func = sleep_func
        self._last_calls: Dict[str, float] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def wait_if_needed(self, provider: ProviderKey) -> float:
        """Block until ``provider`` may be called again; return seconds waited."""
        name = _provider_name(provider)
        with self._provider_lock(name):
            with self._guard:
                last_call = self._last_calls.get(name)
            waited = 0.0
            if last_call is not None:
                remaining = self.min_delay - (self._time_func() - last_call)
                while remaining > 0:
                    self._sleep_func(remaining)
                    waited += remaining
                    remaining = self.min_delay - (self._time_func() - last_call)
            granted_at = self._time_func()
            with self._guard:
                self._last_calls[name] = granted_at
        if waited:
            logger.debug("Rate limited %s for %.3fs", name, waited)
        return waited

    def can_make_request(self, provider: ProviderKey) -> bool:
        name = _provider_name(provider)
        with self._guard:
            last_call = self._last_calls.get(name)
        if last_call is None:
            return True
        return self._time_func() - last_call >= self.min_delay

    def reset(self, provider: Optional[ProviderKey] = None) -> None:
        with self._guard:
            if provider is None:
                self._last_calls.clear()
            else:
                self._last_calls.pop(_provider_name(provider), None)

    def _provider_lock(self, name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock


__all__ = ["RateLimiter"]
