# backend/app/predict.py
"""
Statistical AQI predictions built from the current reading.

These are time-of-day and day-of-week patterns with random variation, not a
trained model.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import numpy as np

from .air_quality import AirQualityGateway
from .errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

BASELINE_AQI = 50
HOURS = 24
DAYS = 7


def hourly_factor(hour: int) -> float:
    # rush hours
    if 7 <= hour <= 9:
        return 1.15
    if 16 <= hour <= 19:
        return 1.2
    if 0 <= hour <= 5:
        return 0.85
    return 1.0


def ozone_factor(hour: int) -> float:
    # sunlight driven, peaks in the afternoon
    if 12 <= hour <= 18:
        return 1.4
    if 19 <= hour <= 21:
        return 1.2
    if 0 <= hour <= 6:
        return 0.6
    return 1.0


def no2_factor(hour: int) -> float:
    # traffic driven
    if 7 <= hour <= 9:
        return 1.3
    if 16 <= hour <= 19:
        return 1.4
    if 0 <= hour <= 5:
        return 0.7
    return 1.0


def _ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class PredictionService:

    def __init__(self, gateway: AirQualityGateway, rng: Optional[np.random.Generator] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.gateway = gateway
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock

    def baseline_aqi(self, lat, lon) -> int:
        """Current standard AQI, or BASELINE_AQI when the provider is unavailable."""
        try:
            return self.gateway.get_current(lat, lon, record=False).result.aqi
        except UpstreamUnavailableError:
            logger.exception("Error fetching current air quality, using baseline AQI %d", BASELINE_AQI)
            return BASELINE_AQI

    def hourly(self, lat, lon) -> List[dict]:
        base = self.baseline_aqi(lat, lon)
        now = self.clock()
        predictions = []
        for i in range(HOURS):
            moment = now + timedelta(hours=i)
            hour = moment.hour
            aqi = base * hourly_factor(hour) + self.rng.uniform(-5, 5)
            aqi = float(np.clip(aqi, 20, 300))
            components = {
                "pm2_5": aqi * 0.6 + self.rng.uniform(0, 5),
                "pm10": aqi * 1.2 + self.rng.uniform(0, 10),
                "o3": max(10.0, aqi * 0.3 * ozone_factor(hour) + self.rng.uniform(0, 15)),
                "no2": max(5.0, aqi * 0.2 * no2_factor(hour) + self.rng.uniform(0, 5)),
                "so2": max(2.0, aqi * 0.1 + self.rng.uniform(0, 3)),
                "co": max(200.0, aqi * 5 + self.rng.uniform(0, 50)),
            }
            predictions.append({
                "timestamp": _ms(moment),
                "aqi": int(round(aqi)),
                "components": {k: float(v) for k, v in components.items()},
                "confidence": round(0.7 - i * 0.02, 2),
            })
        return predictions

    def weekly(self, lat, lon) -> List[dict]:
        base = self.baseline_aqi(lat, lon)
        now = self.clock()
        predictions = []
        for i in range(1, DAYS + 1):
            moment = now + timedelta(days=i)
            # weekends typically have cleaner air
            weekday_factor = 0.85 if moment.weekday() >= 5 else 1.15
            aqi = base * weekday_factor * self.rng.uniform(0.9, 1.1)
            aqi = float(np.clip(aqi, 20, 200))
            predictions.append({
                "timestamp": _ms(moment),
                "aqi": int(round(aqi)),
                "confidence": round(0.8 - i * 0.1, 2),
            })
        return predictions
