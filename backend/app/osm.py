# backend/app/osm.py
import math
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from . import config
from .errors import GatewayError

logger = logging.getLogger(__name__)

# feature type -> (OSM tag key, tag value or None for any value)
FEATURE_TAGS: Dict[str, Tuple[str, Optional[str]]] = {
    "building": ("building", None),
    "park": ("leisure", "park"),
    "hospital": ("amenity", "hospital"),
    "school": ("amenity", "school"),
    "industrial": ("landuse", "industrial"),
    "retail": ("landuse", "retail"),
}
ALLOWED_FEATURE_TYPES = tuple(FEATURE_TAGS)

BBox = Tuple[float, float, float, float]


class OsmError(GatewayError):
    error = "Failed to fetch OpenStreetMap features"

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["details"] = self.message
        return body


def _tag_filter(feature_type: str) -> str:
    key, value = FEATURE_TAGS[feature_type]
    return f'"{key}"="{value}"' if value else f'"{key}"'


def build_query(bbox: BBox, feature_types: Sequence[str]) -> str:
    """Overpass QL for all nodes, ways and relations of the given types inside bbox."""
    min_lon, min_lat, max_lon, max_lat = bbox
    # Overpass expects (south, west, north, east)
    area = f"({min_lat},{min_lon},{max_lat},{max_lon})"
    parts = []
    for feature_type in feature_types:
        tag = _tag_filter(feature_type)
        for element in ("node", "way", "relation"):
            parts.append(f"{element}[{tag}]{area};")
    return "[out:json][timeout:30];\n(\n  " + "\n  ".join(parts) + "\n);\nout geom;"


def _coords(points) -> List[List[float]]:
    return [[p["lon"], p["lat"]] for p in points or [] if "lat" in p and "lon" in p]


def _geometry(element: dict) -> Optional[dict]:
    kind = element.get("type")
    if kind == "node":
        if "lat" not in element or "lon" not in element:
            return None
        return {"type": "Point", "coordinates": [element["lon"], element["lat"]]}
    if kind == "way":
        coords = _coords(element.get("geometry"))
        if len(coords) < 2:
            return None
        if len(coords) >= 4 and coords[0] == coords[-1]:
            return {"type": "Polygon", "coordinates": [coords]}
        return {"type": "LineString", "coordinates": coords}
    if kind == "relation":
        rings = []
        for member in element.get("members", []):
            if member.get("role", "outer") not in ("outer", ""):
                continue
            coords = _coords(member.get("geometry"))
            if len(coords) >= 4 and coords[0] == coords[-1]:
                rings.append([coords])
        if not rings:
            return None
        return {"type": "MultiPolygon", "coordinates": rings}
    return None


def _feature_type(tags: dict, feature_types: Sequence[str]) -> Optional[str]:
    for feature_type in feature_types:
        key, value = FEATURE_TAGS[feature_type]
        if tags.get(key) and (value is None or tags[key] == value):
            return feature_type
    return None


def to_geojson(osm: dict, feature_types: Sequence[str]) -> dict:
    """Convert an Overpass `out geom` response into a GeoJSON FeatureCollection."""
    features = []
    for element in osm.get("elements", []):
        geometry = _geometry(element)
        if geometry is None:
            continue
        osm_id = f"{element['type']}/{element.get('id')}"
        tags = element.get("tags") or {}
        properties = dict(tags)
        properties["id"] = osm_id
        feature_type = _feature_type(tags, feature_types)
        if feature_type:
            properties["featureType"] = feature_type
        features.append({"type": "Feature", "id": osm_id, "geometry": geometry, "properties": properties})
    return {"type": "FeatureCollection", "features": features}


def get_features_in_bbox(bbox: BBox, feature_types: Sequence[str],
                         session: Optional[requests.Session] = None, timeout: int = 60) -> dict:
    if not feature_types:
        return {"type": "FeatureCollection", "features": []}

    query = build_query(bbox, feature_types)
    logger.info("Overpass query for %s in %s", ", ".join(feature_types), bbox)
    http = session or requests
    try:
        resp = http.post(config.OVERPASS_URL, data={"data": query}, timeout=timeout)
        resp.raise_for_status()
        geojson = to_geojson(resp.json(), feature_types)
    except (requests.RequestException, ValueError) as e:
        logger.error("Error querying Overpass API: %s", e)
        raise OsmError("Failed to fetch data from OpenStreetMap (Overpass API).") from e

    logger.info("Converted %d OSM features to GeoJSON", len(geojson["features"]))
    return geojson


def parse_bbox(raw: str) -> BBox:
    parts = raw.split(",")
    if len(parts) != 4:
        raise ValueError(raw)
    values = tuple(float(p) for p in parts)
    if not all(math.isfinite(v) for v in values):
        raise ValueError(raw)
    return values


def parse_feature_types(raw: str) -> List[str]:
    return [t for t in (s.strip() for s in raw.split(",")) if t in FEATURE_TAGS]
