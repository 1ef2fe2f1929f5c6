"""Concurrent multi-provider aggregation."""
from __future__ import annotations

import logging
import math
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..entities import AggregatedData, AggregatedResult, ProviderId, ProviderReading
from ..health import HealthRegistry
from ..providers.base import ProviderError, ProviderTimeout, WeatherProvider
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


class AggregationError(RuntimeError):
    """Base error for aggregation failures."""


class NoDataAvailable(AggregationError):
    """Raised when no provider contributed a reading."""


class OutcomeStatus(str, Enum):
    OK = "ok"
    NO_DATA = "no_data"
    FAILED = "failed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ProviderOutcome:
    provider: ProviderId
    status: OutcomeStatus
    reading: Optional[ProviderReading] = None
    error: Optional[BaseException] = None


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def reduce_readings(readings: Sequence[ProviderReading]) -> AggregatedData:
    """Reduce readings, given in provider priority order, into one consensus.

    Condition ties go to the reading that comes first in ``readings``.
    """
    if not readings:
        raise NoDataAvailable("No weather data available from any provider")

    temperature = _mean([reading.temperature for reading in readings])

    conditions = [reading.condition for reading in readings if reading.condition]
    condition = "Unknown"
    if conditions:
        counts = Counter(conditions)
        top = max(counts.values())
        condition = next(value for value in conditions if counts[value] == top)

    humidity_mean = _mean([reading.humidity for reading in readings if reading.humidity is not None])
    # half-up, round() would bank 42.5 down to 42
    humidity = None if humidity_mean is None else int(math.floor(humidity_mean + 0.5))

    wind_speed = _mean([reading.wind_speed for reading in readings if reading.wind_speed is not None])

    return AggregatedData(
        temperature=temperature if temperature is not None else 0.0,
        condition=condition,
        humidity=humidity,
        wind_speed=wind_speed if wind_speed is not None else 0.0,
    )


class WeatherAggregator:
    """Fetch every configured provider concurrently and reduce the readings.

    Each provider first passes its own rate limiter gate, then all fetches are
    started together and joined for at most ``timeout`` seconds. A provider
    that is still running at that point counts as a timeout for this call;
    its siblings are never cancelled.
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        providers: Sequence[WeatherProvider],
        rate_limiter: RateLimiter,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        health: Optional[HealthRegistry] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not providers:
            raise ValueError("at least one provider is required")
        ids = [provider.name for provider in providers]
        if len(set(ids)) != len(ids):
            raise ValueError("providers must be unique")
        if not math.isfinite(timeout) or timeout <= 0:
            raise ValueError("timeout must be a positive finite number")
        self._providers: Tuple[WeatherProvider, ...] = tuple(providers)
        self._rate_limiter = rate_limiter
        self.timeout = timeout
        self.health = health
        self._clock = clock
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def provider_ids(self) -> Tuple[ProviderId, ...]:
        return tuple(provider.name for provider in self._providers)

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    # Public API ---------------------------------------------------------
    def aggregate(self, city: str) -> AggregatedResult:
        outcomes = self.collect(city)
        readings = [outcome.reading for outcome in outcomes if outcome.reading is not None]
        if not readings:
            raise NoDataAvailable("No weather data available from any provider")
        return AggregatedResult(
            city=city,
            timestamp=self._clock(),
            aggregated=reduce_readings(readings),
            sources=tuple(readings),
        )

    def collect(self, city: str) -> List[ProviderOutcome]:
        """Run the rate-limited concurrent fetch and classify every outcome."""
        executor = ThreadPoolExecutor(
            max_workers=len(self._providers),
            thread_name_prefix="weather-provider",
        )
        try:
            list(executor.map(self._rate_limiter.wait_if_needed, self.provider_ids))
            futures = [executor.submit(provider.fetch, city) for provider in self._providers]
            wait(futures, timeout=self.timeout)
            return [
                self._classify(provider.name, future, city)
                for provider, future in zip(self._providers, futures)
            ]
        finally:
            # timed-out fetches keep their thread until the HTTP timeout fires
            executor.shutdown(wait=False, cancel_futures=True)

    def close(self) -> None:
        for provider in self._providers:
            provider.close()

    # Helpers ------------------------------------------------------------
    def _classify(self, provider: ProviderId, future: Future, city: str) -> ProviderOutcome:
        if not future.done():
            future.cancel()
            self._log.warning(
                "%s API timeout for city %s (exceeded %ss)", provider.value, city, self.timeout
            )
            self._record(provider, timeout=True)
            return ProviderOutcome(provider=provider, status=OutcomeStatus.TIMEOUT)

        error = future.exception()
        if isinstance(error, ProviderTimeout):
            self._log.warning("%s API timeout for city %s: %s", provider.value, city, error)
            self._record(provider, timeout=True)
            return ProviderOutcome(provider=provider, status=OutcomeStatus.TIMEOUT, error=error)
        if error is not None:
            if isinstance(error, ProviderError):
                self._log.warning("%s API error for city %s: %s", provider.value, city, error)
            else:
                self._log.warning(
                    "%s raised unexpectedly for city %s", provider.value, city, exc_info=error
                )
            self._record(provider, timeout=False)
            return ProviderOutcome(provider=provider, status=OutcomeStatus.FAILED, error=error)

        reading = future.result()
        if reading is None:
            self._log.debug("%s returned no data for city %s", provider.value, city)
            return ProviderOutcome(provider=provider, status=OutcomeStatus.NO_DATA)
        return ProviderOutcome(provider=provider, status=OutcomeStatus.OK, reading=reading)

    def _record(self, provider: ProviderId, *, timeout: bool) -> None:
        if self.health is None:
            return
        if timeout:
            self.health.record_provider_timeout(provider.value)
        else:
            self.health.record_provider_error(provider.value)


__all__ = [
    "AggregationError",
    "NoDataAvailable",
    "OutcomeStatus",
    "ProviderOutcome",
    "WeatherAggregator",
    "reduce_readings",
]
