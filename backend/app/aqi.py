# backend/app/aqi.py
"""
Conversion of OpenWeather air pollution readings into the standard 0-500 AQI.

OpenWeather reports a coarse 1-5 index plus raw concentrations (µg/m³). The
standard index is the maximum of the PM2.5, PM10 and O3 sub-indices, each
obtained by linear interpolation through a US EPA style breakpoint table.
Everything here is pure and raises InvalidInputError on malformed numbers.
"""
import math
from dataclasses import dataclass, asdict
from typing import Dict, Mapping, Optional, Tuple, Union

from .errors import InvalidInputError

# (conc_lo, conc_hi, aqi_lo, aqi_hi); a value uses the first segment with value <= conc_hi
# and values above the last segment extrapolate along it.
PM25_BREAKPOINTS = (
    (0.0, 12.0, 0, 50),
    (12.1, 35.4, 51, 100),
    (35.5, 55.4, 101, 150),
    (55.5, 150.4, 151, 200),
    (150.5, 250.4, 201, 300),
    (250.5, 350.4, 301, 400),
    (350.5, 500.0, 401, 500),
)

PM10_BREAKPOINTS = (
    (0.0, 54.0, 0, 50),
    (55.0, 154.0, 51, 100),
    (155.0, 254.0, 101, 150),
    (255.0, 354.0, 151, 200),
    (355.0, 500.0, 201, 300),
)

# simplified µg/m³ proxy for the ppm based ozone table
O3_BREAKPOINTS = (
    (0.0, 108.0, 0, 50),
    (108.1, 140.0, 51, 100),
    (140.1, 170.0, 101, 150),
    (170.1, 210.0, 151, 200),
    (210.1, 400.0, 201, 300),
)

BREAKPOINTS = {
    "pm2_5": PM25_BREAKPOINTS,
    "pm10": PM10_BREAKPOINTS,
    "o3": O3_BREAKPOINTS,
}

# (upper AQI bound, level, description, color), ascending
AQI_CATEGORIES = (
    (50, "Good",
     "Air quality is satisfactory, and air pollution poses little or no risk.", "green"),
    (100, "Moderate",
     "Air quality is acceptable. However, there may be a risk for some people, "
     "particularly those who are unusually sensitive to air pollution.", "yellow"),
    (150, "Unhealthy for Sensitive Groups",
     "Members of sensitive groups may experience health effects. "
     "The general public is less likely to be affected.", "orange"),
    (200, "Unhealthy",
     "Some members of the general public may experience health effects; "
     "members of sensitive groups may experience more serious health effects.", "red"),
    (300, "Very Unhealthy",
     "Health alert: The risk of health effects is increased for everyone.", "purple"),
    (math.inf, "Hazardous",
     "Health warning of emergency conditions: everyone is more likely to be affected.", "maroon"),
)

# OpenWeather's own 1-5 scale, kept for reference only
OPENWEATHER_AQI_SCALE = {
    1: "Good",
    2: "Fair",
    3: "Moderate",
    4: "Poor",
    5: "Very Poor",
}

POLLUTANT_NAMES = {
    "co": "Carbon Monoxide",
    "no": "Nitrogen Monoxide",
    "no2": "Nitrogen Dioxide",
    "o3": "Ozone",
    "so2": "Sulphur Dioxide",
    "pm2_5": "Fine Particles",
    "pm10": "Coarse Particles",
    "nh3": "Ammonia",
}

UNIT = "μg/m³"

Number = Union[int, float]


def _require_concentration(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")
    if value < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value}")
    return value


@dataclass(frozen=True)
class PollutantConcentrations:
    """Pollutant concentrations in µg/m³ as reported by the provider."""
    pm2_5: float
    pm10: float
    o3: float
    co: Optional[float] = None
    no: Optional[float] = None
    no2: Optional[float] = None
    so2: Optional[float] = None
    nh3: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Mapping) -> "PollutantConcentrations":
        if not isinstance(data, Mapping):
            raise InvalidInputError("components must be an object of pollutant concentrations")
        values = {}
        for name in POLLUTANT_NAMES:
            raw = data.get(name)
            if raw is None:
                if name in BREAKPOINTS:
                    raise InvalidInputError(f"{name} is required")
                values[name] = None
                continue
            values[name] = _require_concentration(name, raw)
        return cls(**values)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return asdict(self)


@dataclass(frozen=True)
class StandardAqiResult:
    aqi: int
    level: str
    description: str
    color: str
    source_aqi: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "aqi": self.aqi,
            "openWeatherAqi": self.source_aqi,
            "level": self.level,
            "description": self.description,
            "color": self.color,
        }


def linear_scale(value: float, from_min: float, from_max: float, to_min: float, to_max: float) -> float:
    """Map value from [from_min, from_max] onto [to_min, to_max]."""
    return to_min + (value - from_min) * (to_max - to_min) / (from_max - from_min)


def sub_index(pollutant: str, value: Number) -> float:
    """Unrounded AQI sub-index of one pollutant."""
    try:
        table = BREAKPOINTS[pollutant]
    except KeyError:
        raise InvalidInputError(f"No breakpoint table for {pollutant}")
    value = _require_concentration(pollutant, value)
    for conc_lo, conc_hi, aqi_lo, aqi_hi in table:
        if value <= conc_hi:
            return linear_scale(value, conc_lo, conc_hi, aqi_lo, aqi_hi)
    conc_lo, conc_hi, aqi_lo, aqi_hi = table[-1]
    return linear_scale(value, conc_lo, conc_hi, aqi_lo, aqi_hi)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _category(aqi: Number):
    if isinstance(aqi, bool) or not isinstance(aqi, (int, float)) or not math.isfinite(aqi) or aqi < 0:
        raise InvalidInputError(f"AQI must be a finite number >= 0, got {aqi!r}")
    for upper, level, description, color in AQI_CATEGORIES:
        if aqi <= upper:
            return level, description, color
    # unreachable, the last upper bound is infinite
    raise InvalidInputError(f"AQI out of range: {aqi}")


def get_aqi_category(aqi: Number) -> Tuple[str, str]:
    level, description, _ = _category(aqi)
    return level, description


def get_aqi_color(aqi: Number) -> str:
    return _category(aqi)[2]


def calculate_aqi(components: Union[PollutantConcentrations, Mapping]) -> int:
    """Standard AQI: rounded maximum of the PM2.5, PM10 and O3 sub-indices."""
    if not isinstance(components, PollutantConcentrations):
        components = PollutantConcentrations.from_mapping(components)
    return round_half_up(max(
        sub_index("pm2_5", components.pm2_5),
        sub_index("pm10", components.pm10),
        sub_index("o3", components.o3),
    ))


def convert_to_standard_aqi(source_aqi: Optional[int],
                            components: Union[PollutantConcentrations, Mapping]) -> StandardAqiResult:
    """
    Convert an OpenWeather reading to the standard scale.

    source_aqi is carried through unchanged; it does not affect the result.
    """
    aqi = calculate_aqi(components)
    level, description, color = _category(aqi)
    return StandardAqiResult(aqi=aqi, level=level, description=description, color=color, source_aqi=source_aqi)
