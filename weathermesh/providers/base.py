from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..entities import ProviderId, ProviderReading


logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Base provider error."""


class ProviderTimeout(ProviderError):
    """Raised when the upstream request exceeds its transport timeout."""


class QuotaExceeded(ProviderError):
    """Raised when a provider reports a quota/usage limit issue."""


@dataclass
class RequestConfig:
    timeout: float = 10.0
    retries: int = 0
    backoff_factor: float = 0.3
    status_forcelist: Iterable[int] = (500, 502, 503, 504)
    user_agent: str = "weathermesh/1.0"


class WeatherProvider:
    """Base class that adds retry/timeouts for HTTP providers.

    Subclasses implement :meth:`fetch`, returning ``None`` when the upstream
    service does not know the city and raising :class:`ProviderError` for any
    transport, status or payload problem.
    """

    name: ProviderId

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        self._log = logging.getLogger(self.__class__.__name__)

    def fetch(self, city: str) -> Optional[ProviderReading]:
        raise NotImplementedError

    def close(self) -> None:
        self.session.close()

    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        session.headers["User-Agent"] = config.user_agent
        if config.retries:
            retry = Retry(
                total=config.retries,
                backoff_factor=config.backoff_factor,
                status_forcelist=tuple(config.status_forcelist),
                allowed_methods=frozenset({"GET"}),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text[:200])
            raise QuotaExceeded("quota exceeded")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise ProviderError(f"HTTP {response.status_code}")
        return response

    def _send(self, method: str, url: str, **kwargs: Any) -> Response:
        try:
            return self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise ProviderTimeout("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderError("request failed") from exc

    def _request(self, method: str, url: str, **kwargs: Any) -> Response:
        return self._handle_response(self._send(method, url, **kwargs))

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise ProviderError("invalid json") from exc


def _safe_float(value: Optional[object]) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _safe_int(value: Optional[object]) -> Optional[int]:
    number = _safe_float(value)
    if number is None:
        return None
    return int(round(number))


def _kmh_to_ms(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(value / 3.6, 2)


def _mph_to_ms(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(value * 0.44704, 2)


__all__ = [
    "ProviderError",
    "ProviderTimeout",
    "QuotaExceeded",
    "RequestConfig",
    "WeatherProvider",
]
