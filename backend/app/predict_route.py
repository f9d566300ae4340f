# backend/app/predict_route.py
import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from . import config
from .dependencies import get_prediction_service
from .predict import PredictionService
from .schemas import DailyPrediction, HourlyPrediction

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/predict", tags=["Predictions"])


@router.get("/hourly", response_model=List[HourlyPrediction])
def hourly_predictions(
    lat: str = Query(config.DEFAULT_LAT),
    lon: str = Query(config.DEFAULT_LON),
    service: PredictionService = Depends(get_prediction_service),
):
    predictions = service.hourly(lat, lon)
    logger.info("Returning %d hourly predictions for %s, %s", len(predictions), lat, lon)
    return predictions


@router.get("/weekly", response_model=List[DailyPrediction])
def weekly_predictions(
    lat: str = Query(config.DEFAULT_LAT),
    lon: str = Query(config.DEFAULT_LON),
    service: PredictionService = Depends(get_prediction_service),
):
    predictions = service.weekly(lat, lon)
    logger.info("Returning %d weekly predictions for %s, %s", len(predictions), lat, lon)
    return predictions
