from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ProviderId(str, Enum):
    """Closed set of upstream weather providers."""

    WTTRIN = "wttrin"
    OPENMETEO = "openmeteo"
    METAWEATHER = "metaweather"

    @classmethod
    def parse(cls, value: str) -> "ProviderId":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown weather provider: {value!r}") from None


@dataclass(frozen=True)
class ProviderReading:
    """Normalized reading returned by a single provider.

    Values are stored in canonical units so providers are interchangeable:
    - temperature in Celsius
    - humidity in integer percent
    - wind speed in metres per second
    """

    provider: ProviderId
    temperature: float
    condition: str
    humidity: Optional[int] = None
    wind_speed: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.value,
            "temperature": self.temperature,
            "condition": self.condition,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
            "raw": dict(self.raw),
        }


@dataclass(frozen=True)
class AggregatedData:
    temperature: float
    condition: str
    humidity: Optional[int]
    wind_speed: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "condition": self.condition,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
        }


@dataclass(frozen=True)
class AggregatedResult:
    """Consensus reading for a city built from at least one provider."""

    city: str
    timestamp: datetime
    aggregated: AggregatedData
    sources: Tuple[ProviderReading, ...]

    def __post_init__(self) -> None:
        if not self.sources:
            raise ValueError("an aggregated result requires at least one source")
        object.__setattr__(self, "sources", tuple(self.sources))

    def as_dict(self) -> Dict[str, Any]:
        timestamp = self.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return {
            "city": self.city,
            "timestamp": timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
            "aggregated": self.aggregated.as_dict(),
            "sources": [reading.as_dict() for reading in self.sources],
        }


__all__ = ["AggregatedData", "AggregatedResult", "ProviderId", "ProviderReading"]
