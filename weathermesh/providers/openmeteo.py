from __future__ import annotations

import logging
from typing import Optional, Tuple

from .base import ProviderError, WeatherProvider, _kmh_to_ms, _safe_float
from ..entities import ProviderId, ProviderReading


def describe_weathercode(code: Optional[int]) -> str:
    """Map a WMO weather interpretation code to a condition string."""
    if code is None:
        return "Unknown"
    if code == 0:
        return "Clear sky"
    if 1 <= code <= 3:
        return "Partly cloudy"
    if 45 <= code <= 48:
        return "Foggy"
    if 51 <= code <= 67 or 80 <= code <= 86:
        return "Rainy"
    if 71 <= code <= 77:
        return "Snowy"
    if 95 <= code <= 99:
        return "Thunderstorm"
    return "Unknown"


class OpenMeteoProvider(WeatherProvider):
    name = ProviderId.OPENMETEO
    base_url = "https://api.open-meteo.com/v1/forecast"
    geocoding_url = "https://geocoding-api.open-meteo.com/v1/search"

    def __init__(self, base_url: Optional[str] = None, geocoding_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.geocoding_url = geocoding_url or self.geocoding_url
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self, city: str) -> Optional[ProviderReading]:
        location = self.geocode(city)
        if location is None:
            self._log.debug("Open-Meteo geocoding found nothing for %s", city)
            return None
        latitude, longitude = location
        return self.current(latitude, longitude)

    def geocode(self, city: str) -> Optional[Tuple[float, float]]:
        response = self._request("GET", self.geocoding_url, params={"name": city, "count": 1})
        data = self._json(response)
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None
        first = results[0]
        latitude = _safe_float(first.get("latitude"))
        longitude = _safe_float(first.get("longitude"))
        if latitude is None or longitude is None:
            raise ProviderError("geocoding result without coordinates")
        return latitude, longitude

    def current(self, latitude: float, longitude: float) -> ProviderReading:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current_weather": "true",
        }
        response = self._request("GET", self.base_url, params=params)
        data = self._json(response)
        current = data.get("current_weather") if isinstance(data, dict) else None
        if not current:
            raise ProviderError("missing current weather")

        temperature = _safe_float(current.get("temperature"))
        if temperature is None:
            raise ProviderError("missing temperature")
        code = _safe_float(current.get("weathercode"))

        raw = dict(current)
        raw.update({"latitude": latitude, "longitude": longitude, "wind_direction": current.get("winddirection")})
        return ProviderReading(
            provider=self.name,
            temperature=temperature,
            condition=describe_weathercode(None if code is None else int(code)),
            humidity=None,
            wind_speed=_kmh_to_ms(_safe_float(current.get("windspeed"))),
            raw=raw,
        )


__all__ = ["OpenMeteoProvider", "describe_weathercode"]
