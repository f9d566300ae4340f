# backend/app/air_quality.py
import math
import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from . import config
from .aqi import (
    POLLUTANT_NAMES,
    UNIT,
    PollutantConcentrations,
    StandardAqiResult,
    convert_to_standard_aqi,
)
from .errors import InvalidCoordinatesError, InvalidInputError, InvalidUpstreamResponseError
from .retry import DEFAULT_POLICY, RetryPolicy, call_with_retry
from .utils.simple_cache import AirQualityObservation, ObservationStore

logger = logging.getLogger(__name__)

FORECAST_HOURS = 24


@dataclass(frozen=True)
class ForecastPoint:
    timestamp: int
    result: StandardAqiResult
    components: PollutantConcentrations

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "airQuality": self.result.aqi,
            "openWeatherAqi": self.result.source_aqi,
            "level": self.result.level,
            "color": self.result.color,
            "components": self.components.to_dict(),
        }


@dataclass(frozen=True)
class CurrentAirQuality:
    timestamp: int
    result: StandardAqiResult
    components: PollutantConcentrations
    lat: str
    lon: str

    def to_dict(self) -> dict:
        body = {"timestamp": self.timestamp}
        body.update(self.result.to_dict())
        body["components"] = self.components.to_dict()
        body["location"] = {"lat": self.lat, "lon": self.lon}
        return body

    def to_observation(self) -> AirQualityObservation:
        return AirQualityObservation(
            aqi=self.result.aqi,
            level=self.result.level,
            components=self.components.to_dict(),
            lat=self.lat,
            lon=self.lon,
            timestamp=self.timestamp,
        )


def parse_coordinates(lat, lon) -> Tuple[float, float]:
    """Parse lat/lon into finite floats within the valid ranges."""
    parsed = []
    for name, raw, limit in (("lat", lat, 90.0), ("lon", lon, 180.0)):
        if raw is None or isinstance(raw, bool):
            raise InvalidCoordinatesError(f"{name} is required")
        try:
            value = float(str(raw).strip())
        except ValueError:
            raise InvalidCoordinatesError(f"{name} must be a number, got {raw!r}")
        if not math.isfinite(value) or abs(value) > limit:
            raise InvalidCoordinatesError(f"{name} must be a finite number between -{limit:g} and {limit:g}")
        parsed.append(value)
    return parsed[0], parsed[1]


def _observations(payload: Any) -> List[dict]:
    if not isinstance(payload, dict):
        raise InvalidUpstreamResponseError("Empty response from OpenWeather API")
    items = payload.get("list")
    if not isinstance(items, list):
        raise InvalidUpstreamResponseError("Invalid API response structure: missing 'list' property")
    if not items:
        raise InvalidUpstreamResponseError("OpenWeather API returned empty list")
    return items


def _concentrations(item: Any) -> PollutantConcentrations:
    try:
        components = item["components"]
    except (KeyError, TypeError):
        raise InvalidUpstreamResponseError("Observation has no components")
    try:
        return PollutantConcentrations.from_mapping(components)
    except InvalidInputError as e:
        raise InvalidUpstreamResponseError(f"Malformed components: {e.message}")


def _forecast_point(item: Any) -> ForecastPoint:
    concentrations = _concentrations(item)
    try:
        source_aqi = item["main"]["aqi"]
        timestamp = int(item["dt"]) * 1000
    except (KeyError, TypeError, ValueError):
        raise InvalidUpstreamResponseError("Observation is missing 'main.aqi' or 'dt'")
    return ForecastPoint(timestamp, convert_to_standard_aqi(source_aqi, concentrations), concentrations)


class AirQualityGateway:
    """
    OpenWeather air pollution client feeding the AQI converter.

    Every upstream call is retried per the RetryPolicy; an empty or malformed
    2xx body counts as a failed attempt.
    """

    def __init__(
        self,
        store: Optional[ObservationStore] = None,
        session: Optional[requests.Session] = None,
        policy: RetryPolicy = DEFAULT_POLICY,
        sleep: Callable[[float], None] = time.sleep,
        base_url: str = config.OPENWEATHER_BASE_URL,
    ):
        self.store = store if store is not None else ObservationStore()
        self.session = session or requests.Session()
        self.policy = policy
        self.sleep = sleep
        self.base_url = base_url

    def _request(self, path: str, lat: float, lon: float, api_key: str, timeout: int) -> Any:
        resp = self.session.get(
            f"{self.base_url}{path}",
            params={"lat": lat, "lon": lon, "appid": api_key},
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError:
            raise InvalidUpstreamResponseError("OpenWeather API returned a non-JSON body")

    def _fetch(self, path: str, lat, lon, timeout: int, parse: Callable[[Any], Any], description: str):
        lat_f, lon_f = parse_coordinates(lat, lon)
        api_key = config.get_api_key(config.OPENWEATHER_API_KEY)
        logger.info("Fetching %s for %s, %s", description, lat_f, lon_f)

        def attempt():
            return parse(self._request(path, lat_f, lon_f, api_key, timeout))

        return call_with_retry(
            attempt,
            policy=self.policy,
            retry_on=(requests.RequestException, InvalidUpstreamResponseError),
            sleep=self.sleep,
            description=f"OpenWeather {description} request",
        )

    def get_current(self, lat, lon, record: bool = True) -> CurrentAirQuality:
        point = self._fetch(
            "/air_pollution", lat, lon, config.CURRENT_TIMEOUT,
            lambda payload: _forecast_point(_observations(payload)[0]),
            "current air quality",
        )
        current = CurrentAirQuality(
            timestamp=point.timestamp,
            result=point.result,
            components=point.components,
            lat=str(lat).strip(),
            lon=str(lon).strip(),
        )
        logger.info("OpenWeather AQI: %s, converted to standard AQI: %s (%s)",
                    point.result.source_aqi, point.result.aqi, point.result.level)
        if record:
            self.record_observation(current.to_observation())
        return current

    def get_components(self, lat, lon) -> Dict[str, dict]:
        concentrations = self._fetch(
            "/air_pollution", lat, lon, config.DEFAULT_TIMEOUT,
            lambda payload: _concentrations(_observations(payload)[0]),
            "air quality components",
        )
        values = concentrations.to_dict()
        return {
            name: {"value": values[name], "unit": UNIT, "name": label}
            for name, label in POLLUTANT_NAMES.items()
        }

    def get_forecast(self, lat, lon) -> List[ForecastPoint]:
        return self._fetch(
            "/air_pollution/forecast", lat, lon, config.DEFAULT_TIMEOUT,
            lambda payload: [_forecast_point(item) for item in _observations(payload)[:FORECAST_HOURS]],
            "air quality forecast",
        )

    def record_observation(self, observation: AirQualityObservation) -> None:
        self.store.record(observation)
        logger.info("Stored air quality observation: AQI=%s, Level=%s", observation.aqi, observation.level)
