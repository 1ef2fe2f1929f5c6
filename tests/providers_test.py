from __future__ import annotations

import pytest
import requests
import responses

from weathermesh.entities import ProviderId
from weathermesh.providers import (
    MetaWeatherProvider,
    OpenMeteoProvider,
    ProviderError,
    ProviderTimeout,
    QuotaExceeded,
    WttrInProvider,
    build_providers,
)
from weathermesh.providers.openmeteo import describe_weathercode
from weathermesh.settings import Settings


WTTR_PAYLOAD = {
    "current_condition": [
        {
            "temp_C": "14",
            "humidity": "81",
            "windspeedKmph": "36",
            "winddir16Point": "SW",
            "pressure": "1012",
            "visibility": "10",
            "weatherDesc": [{"value": "Light rain"}],
        }
    ]
}


def test_wttrin_normalization(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/London", json=WTTR_PAYLOAD)

    reading = provider.fetch("London")

    assert reading is not None
    assert reading.provider is ProviderId.WTTRIN
    assert reading.temperature == 14.0
    assert reading.humidity == 81
    assert reading.wind_speed == pytest.approx(10.0, rel=1e-3)
    assert reading.condition == "Light rain"
    assert reading.raw["wind_direction"] == "SW"
    assert reading.raw["pressure"] == 1012.0
    assert requests_mock.last_request.qs == {"format": ["j1"]}
    assert requests_mock.last_request.headers["User-Agent"] == "Mozilla/5.0"


def test_wttrin_unknown_location_is_not_an_error(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/Atlantis", status_code=404, text="Unknown location")

    assert provider.fetch("Atlantis") is None


def test_wttrin_empty_conditions_means_no_data(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/Nowhere", json={"current_condition": []})

    assert provider.fetch("Nowhere") is None


def test_wttrin_missing_description_falls_back_to_unknown(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    payload = {"current_condition": [{"temp_C": "3", "humidity": "", "windspeedKmph": "0"}]}
    requests_mock.get("https://wttr.test/Oslo", json=payload)

    reading = provider.fetch("Oslo")

    assert reading is not None
    assert reading.condition == "Unknown"
    assert reading.humidity is None
    assert reading.wind_speed == 0.0


def test_wttrin_server_error_raises(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/London", status_code=503, text="unavailable")

    with pytest.raises(ProviderError):
        provider.fetch("London")


def test_wttrin_invalid_json_raises(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/London", text="Sunny +14C")

    with pytest.raises(ProviderError):
        provider.fetch("London")


def test_wttrin_missing_temperature_raises(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/London", json={"current_condition": [{"humidity": "50"}]})

    with pytest.raises(ProviderError):
        provider.fetch("London")


def test_quota_exceeded_is_a_provider_error(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/London", status_code=429, text="slow down")

    with pytest.raises(QuotaExceeded):
        provider.fetch("London")


def test_transport_timeout_is_reported(requests_mock):
    provider = WttrInProvider(base_url="https://wttr.test")
    requests_mock.get("https://wttr.test/London", exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ProviderTimeout):
        provider.fetch("London")


def test_connection_error_is_reported(requests_mock):
    provider = OpenMeteoProvider(base_url="https://forecast.test", geocoding_url="https://geo.test")
    requests_mock.get("https://geo.test", exc=requests.exceptions.ConnectionError)

    with pytest.raises(ProviderError):
        provider.fetch("London")


def test_openmeteo_geocodes_then_fetches_current(requests_mock):
    provider = OpenMeteoProvider(base_url="https://forecast.test", geocoding_url="https://geo.test")
    requests_mock.get(
        "https://geo.test",
        json={"results": [{"latitude": 51.5, "longitude": -0.12, "name": "London", "country": "UK"}]},
    )
    requests_mock.get(
        "https://forecast.test",
        json={
            "current_weather": {
                "temperature": 12.3,
                "windspeed": 18.0,
                "winddirection": 200,
                "weathercode": 61,
                "time": "2024-01-01T12:00",
            }
        },
    )

    reading = provider.fetch("London")

    assert reading is not None
    assert reading.provider is ProviderId.OPENMETEO
    assert reading.temperature == 12.3
    assert reading.condition == "Rainy"
    assert reading.humidity is None
    assert reading.wind_speed == pytest.approx(5.0, rel=1e-3)
    assert requests_mock.call_count == 2
    assert requests_mock.last_request.qs["latitude"] == ["51.5"]
    assert requests_mock.last_request.qs["current_weather"] == ["true"]


def test_openmeteo_unknown_city_skips_forecast(requests_mock):
    provider = OpenMeteoProvider(base_url="https://forecast.test", geocoding_url="https://geo.test")
    requests_mock.get("https://geo.test", json={"generationtime_ms": 0.5})

    assert provider.fetch("Atlantis") is None
    assert requests_mock.call_count == 1


def test_openmeteo_missing_current_weather_raises(requests_mock):
    provider = OpenMeteoProvider(base_url="https://forecast.test", geocoding_url="https://geo.test")
    requests_mock.get("https://geo.test", json={"results": [{"latitude": 1.0, "longitude": 2.0}]})
    requests_mock.get("https://forecast.test", json={"hourly": {}})

    with pytest.raises(ProviderError):
        provider.fetch("Somewhere")


@pytest.mark.parametrize(
    "code, expected",
    [
        (0, "Clear sky"),
        (2, "Partly cloudy"),
        (45, "Foggy"),
        (63, "Rainy"),
        (81, "Rainy"),
        (73, "Snowy"),
        (96, "Thunderstorm"),
        (100, "Unknown"),
        (None, "Unknown"),
    ],
)
def test_weathercode_mapping(code, expected):
    assert describe_weathercode(code) == expected


@responses.activate
def test_metaweather_search_then_location():
    responses.add(
        responses.GET,
        "https://metaweather.test/api/location/search/",
        json=[{"woeid": 44418, "title": "London"}],
    )
    responses.add(
        responses.GET,
        "https://metaweather.test/api/location/44418/",
        json={
            "consolidated_weather": [
                {
                    "the_temp": 9.5,
                    "weather_state_name": "Light Cloud",
                    "humidity": 70,
                    "wind_speed": 10.0,
                    "wind_direction_compass": "NE",
                    "air_pressure": 1020.0,
                    "visibility": 11.2,
                }
            ]
        },
    )
    provider = MetaWeatherProvider(base_url="https://metaweather.test/api")

    reading = provider.fetch("London")

    assert reading is not None
    assert reading.provider is ProviderId.METAWEATHER
    assert reading.temperature == 9.5
    assert reading.condition == "Light Cloud"
    assert reading.humidity == 70
    assert reading.wind_speed == pytest.approx(4.47, rel=1e-3)
    assert reading.raw["woeid"] == 44418
    assert len(responses.calls) == 2


@responses.activate
def test_metaweather_unknown_city_returns_none():
    responses.add(responses.GET, "https://metaweather.test/api/location/search/", json=[])
    provider = MetaWeatherProvider(base_url="https://metaweather.test/api")

    assert provider.fetch("Atlantis") is None
    assert len(responses.calls) == 1


@responses.activate
def test_metaweather_empty_forecast_raises():
    responses.add(responses.GET, "https://metaweather.test/api/location/search/", json=[{"woeid": 1}])
    responses.add(responses.GET, "https://metaweather.test/api/location/1/", json={"consolidated_weather": []})
    provider = MetaWeatherProvider(base_url="https://metaweather.test/api")

    with pytest.raises(ProviderError):
        provider.fetch("Somewhere")


def test_build_providers_follows_configured_order():
    settings = Settings(
        providers=(ProviderId.METAWEATHER, ProviderId.WTTRIN, ProviderId.OPENMETEO),
        provider_timeout=3.0,
        wttrin_url="https://wttr.test",
    )

    providers = build_providers(settings)

    assert [provider.name for provider in providers] == [
        ProviderId.METAWEATHER,
        ProviderId.WTTRIN,
        ProviderId.OPENMETEO,
    ]
    assert all(provider.request_config.timeout == 3.0 for provider in providers)
    assert providers[1].base_url == "https://wttr.test"
    assert providers[1].session.headers["User-Agent"] == "Mozilla/5.0"
