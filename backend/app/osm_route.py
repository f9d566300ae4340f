# backend/app/osm_route.py
import logging
from typing import Optional

from fastapi import APIRouter, Query

from . import osm
from .errors import ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/osm", tags=["OpenStreetMap"])


@router.get("/features")
def features(
    bbox: Optional[str] = Query(None, description="minLon,minLat,maxLon,maxLat"),
    types: Optional[str] = Query(None, description="Comma separated feature types"),
):
    """OSM features of the requested types inside bbox, as GeoJSON."""
    if not bbox or not types:
        raise ValidationError("bbox and types are required", error="Missing required query parameters: bbox, types")

    try:
        box = osm.parse_bbox(bbox)
    except ValueError:
        raise ValidationError(
            f"bbox must be four finite numbers, got {bbox!r}",
            error="Invalid bbox format. Expected: minLon,minLat,maxLon,maxLat",
        )

    feature_types = osm.parse_feature_types(types)
    if not feature_types:
        allowed = ", ".join(osm.ALLOWED_FEATURE_TYPES)
        raise ValidationError(
            f"None of {types!r} is a known feature type",
            error=f"No valid feature types provided. Allowed types: {allowed}",
        )

    # OsmError is rendered by the app-level GatewayError handler
    geojson = osm.get_features_in_bbox(box, feature_types)
    logger.info("Returning %d OSM features", len(geojson["features"]))
    return geojson
