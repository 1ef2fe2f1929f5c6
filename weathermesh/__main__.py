"""Command-line entry point to fetch aggregated weather for a city."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional, Sequence

from .services.weather import WeatherService, WeatherServiceError, build_weather_service
from .settings import ImproperlyConfigured, Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="weathermesh", description="Fetch aggregated weather for a city")
    parser.add_argument("city", nargs="?", help="City name")
    parser.add_argument("--force-refresh", action="store_true", help="Skip the cache read")
    parser.add_argument("--sources", action="store_true", help="Print only the per-provider readings")
    parser.add_argument("--diagnostics", action="store_true", help="Print provider and cache health")
    return parser


def run(args: argparse.Namespace, service: WeatherService) -> Any:
    if args.sources:
        return [reading.as_dict() for reading in service.get_sources(args.city)]
    result = service.get_weather(args.city, force_refresh=args.force_refresh)
    return result.as_dict()


def main(argv: Optional[Sequence[str]] = None, service: Optional[WeatherService] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.city and not args.diagnostics:
        parser.error("city is required unless --diagnostics is given")

    owns_service = service is None
    if service is None:
        try:
            settings = Settings.from_env()
        except ImproperlyConfigured as exc:
            parser.error(str(exc))
        logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
        service = build_weather_service(settings)

    try:
        payload: Any = {}
        if args.city:
            payload = run(args, service)
        if args.diagnostics:
            diagnostics = service.diagnostics()
            payload = {"weather": payload, "diagnostics": diagnostics} if args.city else diagnostics
    except WeatherServiceError:
        sys.stderr.write("weathermesh: weather data is unavailable\n")
        return 1
    except ValueError as exc:
        sys.stderr.write(f"weathermesh: {exc}\n")
        return 2
    finally:
        if owns_service:
            service.close()

    sys.stdout.write(json.dumps(payload) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
