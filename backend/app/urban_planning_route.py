# backend/app/urban_planning_route.py
import logging
from typing import Optional

from fastapi import APIRouter, Query

from .air_quality import parse_coordinates
from .errors import ValidationError
from .recommendations import get_recommendation
from .schemas import RecommendationRequest, RecommendationResponse, Topology

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/urban-planning", tags=["Urban Planning"])

DEFAULT_TOPOLOGY = {"elevation": 100, "terrain": "flat", "waterBodies": 2, "populationDensity": 5000}

# (lat, lon, profile); a location within 0.1 degrees of the centre gets the profile
KNOWN_TOPOLOGIES = (
    (13.04, 80.17, {"elevation": 16, "terrain": "flat", "waterBodies": 3, "populationDensity": 11800}),  # Ambattur
)


def topology_for(lat: float, lon: float) -> dict:
    for centre_lat, centre_lon, profile in KNOWN_TOPOLOGIES:
        if abs(lat - centre_lat) < 0.1 and abs(lon - centre_lon) < 0.1:
            return dict(profile)
    return dict(DEFAULT_TOPOLOGY)


@router.get("/topology", response_model=Topology)
def topology(lat: Optional[str] = Query(None), lon: Optional[str] = Query(None)):
    if not lat or not lon:
        raise ValidationError("lat and lon are required", error="Missing latitude or longitude parameters")
    lat_f, lon_f = parse_coordinates(lat, lon)
    logger.info("Fetching topology data for coordinates: %s, %s", lat_f, lon_f)
    return topology_for(lat_f, lon_f)


@router.post("/recommendations", response_model=RecommendationResponse, response_model_exclude_none=True)
def recommendations(body: RecommendationRequest):
    if not body.prompt:
        raise ValidationError("Request body must include a non-empty prompt", error="Prompt is required")
    return get_recommendation(body.prompt)
