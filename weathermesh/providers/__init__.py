"""Upstream weather provider adapters."""
from __future__ import annotations

from typing import List

from .base import ProviderError, ProviderTimeout, QuotaExceeded, RequestConfig, WeatherProvider
from .metaweather import MetaWeatherProvider
from .openmeteo import OpenMeteoProvider
from .wttrin import WttrInProvider
from ..entities import ProviderId
from ..settings import Settings


def build_providers(settings: Settings) -> List[WeatherProvider]:
    """Instantiate the configured providers in priority order."""
    timeout = settings.provider_timeout
    retries = settings.http_retries
    providers: List[WeatherProvider] = []
    for provider_id in settings.providers:
        if provider_id is ProviderId.WTTRIN:
            config = RequestConfig(timeout=timeout, retries=retries, user_agent="Mozilla/5.0")
            providers.append(WttrInProvider(base_url=settings.wttrin_url, request_config=config))
        elif provider_id is ProviderId.OPENMETEO:
            providers.append(
                OpenMeteoProvider(
                    base_url=settings.openmeteo_forecast_url,
                    geocoding_url=settings.openmeteo_geocoding_url,
                    request_config=RequestConfig(timeout=timeout, retries=retries),
                )
            )
        elif provider_id is ProviderId.METAWEATHER:
            providers.append(
                MetaWeatherProvider(
                    base_url=settings.metaweather_url,
                    request_config=RequestConfig(timeout=timeout, retries=retries),
                )
            )
    return providers


__all__ = [
    "MetaWeatherProvider",
    "OpenMeteoProvider",
    "ProviderError",
    "ProviderTimeout",
    "QuotaExceeded",
    "RequestConfig",
    "WeatherProvider",
    "WttrInProvider",
    "build_providers",
]
