"""Rate-limited, cached weather aggregation across several public providers."""
from __future__ import annotations

from .cache import WeatherCache
from .entities import AggregatedData, AggregatedResult, ProviderId, ProviderReading
from .services import (
    NoDataAvailable,
    RateLimiter,
    WeatherAggregator,
    WeatherService,
    WeatherServiceError,
    build_weather_service,
)
from .settings import Settings

__version__ = "0.1.0"
__all__ = [
    "AggregatedData",
    "AggregatedResult",
    "NoDataAvailable",
    "ProviderId",
    "ProviderReading",
    "RateLimiter",
    "Settings",
    "WeatherAggregator",
    "WeatherCache",
    "WeatherService",
    "WeatherServiceError",
    "build_weather_service",
]
