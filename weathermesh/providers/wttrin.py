from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from .base import ProviderError, RequestConfig, WeatherProvider, _kmh_to_ms, _safe_float, _safe_int
from ..entities import ProviderId, ProviderReading


class WttrInProvider(WeatherProvider):
    """wttr.in JSON endpoint; every numeric field arrives as a string."""

    name = ProviderId.WTTRIN
    base_url = "https://wttr.in"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        # wttr.in answers with plain text unless it sees a browser-like agent
        kwargs.setdefault("request_config", RequestConfig(user_agent="Mozilla/5.0"))
        super().__init__(**kwargs)
        self.base_url = (base_url or self.base_url).rstrip("/")
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self, city: str) -> Optional[ProviderReading]:
        url = f"{self.base_url}/{quote(city)}"
        response = self._send("GET", url, params={"format": "j1"})
        if response.status_code == 404:
            self._log.debug("wttr.in does not know %s", city)
            return None
        data = self._json(self._handle_response(response))
        if not isinstance(data, dict):
            raise ProviderError("unexpected payload")

        conditions = data.get("current_condition") or []
        if not conditions:
            return None
        current = conditions[0]

        temperature = _safe_float(current.get("temp_C"))
        if temperature is None:
            raise ProviderError("missing temperature")

        raw = dict(current)
        raw.update(
            {
                "wind_direction": current.get("winddir16Point"),
                "pressure": _safe_float(current.get("pressure")),
                "visibility": _safe_float(current.get("visibility")),
            }
        )
        return ProviderReading(
            provider=self.name,
            temperature=temperature,
            condition=self._condition(current),
            humidity=_safe_int(current.get("humidity")),
            wind_speed=_kmh_to_ms(_safe_float(current.get("windspeedKmph"))),
            raw=raw,
        )

    def _condition(self, current: dict) -> str:
        descriptions = current.get("weatherDesc") or []
        if descriptions and isinstance(descriptions[0], dict):
            value = (descriptions[0].get("value") or "").strip()
            if value:
                return value
        return "Unknown"


__all__ = ["WttrInProvider"]
