# backend/app/air_quality_route.py
import math
import time
import logging
from numbers import Number
from typing import Dict

from fastapi import APIRouter, Body, Depends, Query

from . import config
from .air_quality import AirQualityGateway
from .aqi import round_half_up
from .dependencies import get_gateway
from .errors import ValidationError
from .schemas import Component, CurrentAirQualityResponse, ForecastResponse, SuccessResponse
from .utils.simple_cache import AirQualityObservation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Air Quality"])

REQUIRED_FIELDS = ("aqi", "level", "components")


@router.get("/current", response_model=CurrentAirQualityResponse)
def current_air_quality(
    lat: str = Query(config.DEFAULT_LAT),
    lon: str = Query(config.DEFAULT_LON),
    gateway: AirQualityGateway = Depends(get_gateway),
):
    """Current standard AQI; also becomes the latest stored observation."""
    logger.info("Current air quality requested for %s, %s", lat, lon)
    data = gateway.get_current(lat, lon)
    logger.info("Returning air quality data: AQI=%s, Level=%s", data.result.aqi, data.result.level)
    return data.to_dict()


@router.get("/components", response_model=Dict[str, Component])
def air_quality_components(
    lat: str = Query(config.DEFAULT_LAT),
    lon: str = Query(config.DEFAULT_LON),
    gateway: AirQualityGateway = Depends(get_gateway),
):
    return gateway.get_components(lat, lon)


@router.get("/forecast", response_model=ForecastResponse)
def air_quality_forecast(
    lat: str = Query(config.DEFAULT_LAT),
    lon: str = Query(config.DEFAULT_LON),
    gateway: AirQualityGateway = Depends(get_gateway),
):
    """Next 24 hourly forecast points, each converted to the standard AQI."""
    forecast = gateway.get_forecast(lat, lon)
    return {
        "forecast": [point.to_dict() for point in forecast],
        "location": {"lat": str(lat).strip(), "lon": str(lon).strip()},
    }


def _observation_from_payload(payload: dict) -> AirQualityObservation:
    missing = [field for field in REQUIRED_FIELDS if payload.get(field) in (None, "", {})]
    if missing:
        raise ValidationError(f"Missing required air quality data: {', '.join(missing)}")

    aqi = payload["aqi"]
    if isinstance(aqi, bool) or not isinstance(aqi, Number) or not math.isfinite(aqi) or aqi < 0:
        raise ValidationError("aqi must be a finite non-negative number")
    if not isinstance(payload["level"], str):
        raise ValidationError("level must be a string")
    if not isinstance(payload["components"], dict):
        raise ValidationError("components must be an object")

    location = payload.get("location") or {}
    if not isinstance(location, dict):
        raise ValidationError("location must be an object with lat and lon")
    return AirQualityObservation(
        aqi=round_half_up(aqi),
        level=payload["level"],
        components=payload["components"],
        lat=str(location.get("lat", "0")),
        lon=str(location.get("lon", "0")),
        timestamp=int(time.time() * 1000),
    )


@router.post("/store-air-quality", response_model=SuccessResponse)
def store_air_quality(payload: dict = Body(...), gateway: AirQualityGateway = Depends(get_gateway)):
    """Let the frontend push the reading it is showing, for the news summary."""
    observation = _observation_from_payload(payload)
    gateway.record_observation(observation)
    return {"success": True}
