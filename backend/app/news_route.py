# backend/app/news_route.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from .dependencies import get_news_service
from .errors import GatewayError
from .news import NewsSummaryService, fallback_body
from .schemas import NewsResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/news", tags=["News"])


@router.get("/air-quality", response_model=NewsResponse)
def air_quality_news(
    location: str = Query("global"),
    aqi: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    service: NewsSummaryService = Depends(get_news_service),
):
    logger.info("Fetching news for location: %s", location)
    try:
        return service.get_air_quality_news(location, aqi=aqi, level=level)
    except GatewayError as e:
        logger.error("Error fetching air quality news: %s", e.message)
        body = fallback_body(location)
        body["message"] = e.message
        return JSONResponse(body, status_code=e.status_code)
