from __future__ import annotations

import logging
from typing import Optional

from .base import ProviderError, WeatherProvider, _mph_to_ms, _safe_float, _safe_int
from ..entities import ProviderId, ProviderReading


class MetaWeatherProvider(WeatherProvider):
    """MetaWeather location search followed by the consolidated forecast."""

    name = ProviderId.METAWEATHER
    base_url = "https://www.metaweather.com/api"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = (base_url or self.base_url).rstrip("/")
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self, city: str) -> Optional[ProviderReading]:
        woeid = self.search_location(city)
        if woeid is None:
            return None
        return self.location_weather(woeid)

    def search_location(self, city: str) -> Optional[int]:
        response = self._request("GET", f"{self.base_url}/location/search/", params={"query": city})
        locations = self._json(response)
        if not isinstance(locations, list):
            raise ProviderError("unexpected search payload")
        if not locations:
            return None
        woeid = locations[0].get("woeid")
        if woeid is None:
            raise ProviderError("location without woeid")
        return int(woeid)

    def location_weather(self, woeid: int) -> ProviderReading:
        response = self._request("GET", f"{self.base_url}/location/{woeid}/")
        data = self._json(response)
        consolidated = data.get("consolidated_weather") if isinstance(data, dict) else None
        if not consolidated:
            raise ProviderError("missing consolidated weather")
        current = consolidated[0]

        temperature = _safe_float(current.get("the_temp"))
        if temperature is None:
            raise ProviderError("missing temperature")

        raw = dict(current)
        raw.update(
            {
                "woeid": woeid,
                "wind_direction": current.get("wind_direction_compass"),
                "pressure": _safe_float(current.get("air_pressure")),
                "visibility": _safe_float(current.get("visibility")),
            }
        )
        return ProviderReading(
            provider=self.name,
            temperature=temperature,
            condition=current.get("weather_state_name") or "Unknown",
            humidity=_safe_int(current.get("humidity")),
            wind_speed=_mph_to_ms(_safe_float(current.get("wind_speed"))),
            raw=raw,
        )


__all__ = ["MetaWeatherProvider"]
