from .aggregator import AggregationError, NoDataAvailable, WeatherAggregator, reduce_readings
from .rate_limiter import RateLimiter
from .weather import WeatherService, WeatherServiceError, build_weather_service

__all__ = [
    "AggregationError",
    "NoDataAvailable",
    "RateLimiter",
    "WeatherAggregator",
    "WeatherService",
    "WeatherServiceError",
    "build_weather_service",
    "reduce_readings",
]
