# backend/app/dependencies.py
from functools import lru_cache

from .air_quality import AirQualityGateway
from .news import NewsSummaryService
from .predict import PredictionService
from .utils.simple_cache import ObservationStore


# Process-wide singletons; routes receive them through Depends so tests can
# swap them with app.dependency_overrides.
@lru_cache(maxsize=None)
def get_store() -> ObservationStore:
    return ObservationStore()


@lru_cache(maxsize=None)
def get_gateway() -> AirQualityGateway:
    return AirQualityGateway(store=get_store())


@lru_cache(maxsize=None)
def get_news_service() -> NewsSummaryService:
    return NewsSummaryService(get_gateway(), get_store())


@lru_cache(maxsize=None)
def get_prediction_service() -> PredictionService:
    return PredictionService(get_gateway())
