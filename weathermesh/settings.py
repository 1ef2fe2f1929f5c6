"""Environment driven settings for the weather aggregation service."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .entities import ProviderId


class ImproperlyConfigured(RuntimeError):
    """Raised when the environment holds an invalid configuration."""


def env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    source = os.environ if environ is None else environ
    value = source.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


def _float(name: str, default: str, environ: Optional[Mapping[str, str]]) -> float:
    raw = env(name, default, environ)
    try:
        value = float(raw)
    except ValueError:
        raise ImproperlyConfigured(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ImproperlyConfigured(f"{name} must be a finite number, got {raw!r}")
    return value


def _int(name: str, default: str, environ: Optional[Mapping[str, str]]) -> int:
    raw = env(name, default, environ)
    try:
        return int(raw)
    except ValueError:
        raise ImproperlyConfigured(f"{name} must be an integer, got {raw!r}") from None


def _providers(raw: str) -> Tuple[ProviderId, ...]:
    names = [part for part in (item.strip() for item in raw.split(",")) if part]
    try:
        providers = tuple(ProviderId.parse(name) for name in names)
    except ValueError as exc:
        raise ImproperlyConfigured(str(exc)) from None
    if not providers:
        raise ImproperlyConfigured("WEATHER_PROVIDERS must name at least one provider")
    if len(set(providers)) != len(providers):
        raise ImproperlyConfigured("WEATHER_PROVIDERS contains duplicates")
    return providers


@dataclass(frozen=True)
class Settings:
    cache_ttl: float = 30 * 60
    cache_cleanup_interval: float = 0.0
    rate_limit_delay: float = 1.0
    provider_timeout: float = 10.0
    providers: Tuple[ProviderId, ...] = (ProviderId.WTTRIN, ProviderId.OPENMETEO)
    http_retries: int = 0
    wttrin_url: str = "https://wttr.in"
    openmeteo_forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    openmeteo_geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    metaweather_url: str = "https://www.metaweather.com/api"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        settings = cls(
            cache_ttl=_float("WEATHER_CACHE_TTL", "1800", environ),
            cache_cleanup_interval=_float("WEATHER_CACHE_CLEANUP_INTERVAL", "0", environ),
            rate_limit_delay=_float("WEATHER_RATE_LIMIT_DELAY", "1.0", environ),
            provider_timeout=_float("WEATHER_PROVIDER_TIMEOUT", "10.0", environ),
            providers=_providers(env("WEATHER_PROVIDERS", "wttrin,openmeteo", environ)),
            http_retries=_int("WEATHER_HTTP_RETRIES", "0", environ),
            wttrin_url=env("WTTRIN_URL", cls.wttrin_url, environ),
            openmeteo_forecast_url=env("OPENMETEO_FORECAST_URL", cls.openmeteo_forecast_url, environ),
            openmeteo_geocoding_url=env("OPENMETEO_GEOCODING_URL", cls.openmeteo_geocoding_url, environ),
            metaweather_url=env("METAWEATHER_URL", cls.metaweather_url, environ),
            log_level=env("WEATHER_LOG_LEVEL", "INFO", environ).upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        errors = []
        for label, value in (
            ("cache TTL", self.cache_ttl),
            ("cache cleanup interval", self.cache_cleanup_interval),
            ("rate limit delay", self.rate_limit_delay),
            ("provider timeout", self.provider_timeout),
        ):
            if not math.isfinite(value):
                errors.append(f"{label} must be finite")
        if errors:
            raise ImproperlyConfigured("; ".join(errors))
        if self.cache_ttl <= 0:
            errors.append("cache TTL must be positive")
        if self.cache_cleanup_interval < 0:
            errors.append("cache cleanup interval must be non-negative")
        if self.rate_limit_delay < 0:
            errors.append("rate limit delay must be non-negative")
        if self.provider_timeout <= 0:
            errors.append("provider timeout must be positive")
        if self.http_retries < 0:
            errors.append("HTTP retries must be non-negative")
        if not self.providers:
            errors.append("at least one provider is required")
        for url in (self.wttrin_url, self.openmeteo_forecast_url, self.openmeteo_geocoding_url, self.metaweather_url):
            if not url.startswith(("http://", "https://")):
                errors.append(f"invalid URL: {url}")
        if errors:
            raise ImproperlyConfigured("; ".join(errors))


__all__ = ["ImproperlyConfigured", "Settings", "env"]
