# backend/app/schemas.py
from typing import Dict, List, Optional

from pydantic import BaseModel


class Location(BaseModel):
    lat: str
    lon: str


class CurrentAirQualityResponse(BaseModel):
    """Standard AQI for one location, plus the raw OpenWeather reading."""
    timestamp: int
    aqi: int
    openWeatherAqi: Optional[int] = None
    level: str
    description: str
    color: str
    components: Dict[str, Optional[float]]
    location: Location


class Component(BaseModel):
    value: Optional[float] = None
    unit: str
    name: str


class ForecastEntry(BaseModel):
    timestamp: int
    airQuality: int
    openWeatherAqi: Optional[int] = None
    level: str
    color: str
    components: Dict[str, Optional[float]]


class ForecastResponse(BaseModel):
    forecast: List[ForecastEntry]
    location: Location


class SuccessResponse(BaseModel):
    success: bool


class NewsArticle(BaseModel):
    title: str
    summary: str
    source: str
    url: str
    date: str


class NewsResponse(BaseModel):
    articles: List[NewsArticle]
    aiSummary: str


class HourlyPrediction(BaseModel):
    timestamp: int
    aqi: int
    components: Dict[str, float]
    confidence: float


class DailyPrediction(BaseModel):
    timestamp: int
    aqi: int
    confidence: float


class Topology(BaseModel):
    elevation: int
    terrain: str
    waterBodies: int
    populationDensity: int


class RecommendationRequest(BaseModel):
    prompt: Optional[str] = None


class RecommendationResponse(BaseModel):
    recommendation: str
    source: Optional[str] = None
