"""Cache-first weather lookups on top of the aggregation engine."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..cache import CacheJanitor, WeatherCache
from ..entities import AggregatedResult, ProviderReading
from ..health import HealthRegistry
from ..providers import build_providers
from ..settings import Settings
from .aggregator import NoDataAvailable, WeatherAggregator
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


class WeatherServiceError(RuntimeError):
    """Raised when no provider can return weather data."""


class WeatherService:
    cache_key_template = "weather:{city}"

    def __init__(
        self,
        aggregator: WeatherAggregator,
        cache: WeatherCache,
        *,
        ttl: Optional[float] = None,
        health: Optional[HealthRegistry] = None,
        janitor: Optional[CacheJanitor] = None,
    ) -> None:
        self.aggregator = aggregator
        self.cache = cache
        self.ttl = ttl
        if health is None:
            health = aggregator.health if aggregator.health is not None else HealthRegistry()
        if aggregator.health is None:
            aggregator.health = health
        elif aggregator.health is not health:
            raise ValueError("service and aggregator must share one health registry")
        self.health = health
        self.janitor = janitor
        self._log = logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    def get_weather(self, city: str, *, force_refresh: bool = False) -> AggregatedResult:
        city = self._normalize_city(city)
        cache_key = self.cache_key(city)
        if not force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._log.debug("Cache hit for %s", cache_key)
                return cached

        result = self._aggregate(city)
        self.cache.set(cache_key, result, self.ttl)
        return result

    def get_sources(self, city: str) -> List[ProviderReading]:
        """Return the live per-provider readings without touching the cache."""
        return list(self._aggregate(self._normalize_city(city)).sources)

    def cache_key(self, city: str) -> str:
        return self.cache_key_template.format(city=city.strip().lower())

    def diagnostics(self) -> Dict[str, Any]:
        self.health.set_cache_stats(self.cache.stats())
        snapshot = self.health.snapshot()
        limiter = self.aggregator.rate_limiter
        snapshot["rate_limits"] = {
            provider.value: limiter.can_make_request(provider) for provider in self.aggregator.provider_ids
        }
        return snapshot

    def close(self) -> None:
        if self.janitor is not None:
            self.janitor.stop()
        self.aggregator.close()

    # Helpers ------------------------------------------------------------
    def _aggregate(self, city: str) -> AggregatedResult:
        try:
            return self.aggregator.aggregate(city)
        except NoDataAvailable as exc:
            self._log.error("Weather aggregation failed for %s", city)
            raise WeatherServiceError("Failed to aggregate weather") from exc

    @staticmethod
    def _normalize_city(city: str) -> str:
        city = (city or "").strip()
        if not city:
            raise ValueError("city must be provided")
        return city


def build_weather_service(settings: Optional[Settings] = None) -> WeatherService:
    """Wire providers, rate limiter, aggregator and cache from settings."""
    settings = settings or Settings.from_env()
    health = HealthRegistry()
    aggregator = WeatherAggregator(
        build_providers(settings),
        RateLimiter(settings.rate_limit_delay),
        timeout=settings.provider_timeout,
        health=health,
    )
    cache = WeatherCache(default_ttl=settings.cache_ttl)
    janitor = None
    if settings.cache_cleanup_interval > 0:
        janitor = CacheJanitor(cache, settings.cache_cleanup_interval)
        janitor.start()
    logger.info(
        "Weather service configured with providers %s",
        ", ".join(provider.value for provider in settings.providers),
    )
    return WeatherService(aggregator, cache, ttl=settings.cache_ttl, health=health, janitor=janitor)


__all__ = ["WeatherService", "WeatherServiceError", "build_weather_service"]
