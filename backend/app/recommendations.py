# backend/app/recommendations.py
import logging
from typing import Optional

import requests

from . import config
from .errors import InvalidUpstreamResponseError

logger = logging.getLogger(__name__)

MODEL = "deepseek/deepseek-chat-v3-0324"

FALLBACK_RECOMMENDATION = """# Urban Planning Recommendations (Fallback Response)

## Land Use & Zoning
- Implement mixed-use development with residential, commercial and green areas
- Create buffer zones around water bodies and sensitive ecological areas
- Plan for moderate density housing with adequate community facilities

## Green Infrastructure
- Develop interconnected green spaces and urban forests
- Install green roofs and vertical gardens on buildings
- Create bioswales and rain gardens for stormwater management

## Transportation
- Design pedestrian-friendly streets and neighborhoods
- Implement cycling infrastructure network
- Optimize public transit routes and frequencies

## Building Design
- Use sustainable and local building materials
- Implement energy-efficient designs with natural lighting
- Plan for adequate ventilation systems in all buildings"""


def call_openrouter(prompt: str, session: Optional[requests.Session] = None, timeout: int = 60) -> str:
    """Single-message chat completion via OpenRouter."""
    api_key = config.get_api_key(config.OPENROUTER_API_KEY)
    http = session or requests
    resp = http.post(
        config.OPENROUTER_URL,
        json={"model": MODEL, "messages": [{"role": "user", "content": prompt}]},
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "X-Title": "Urban Air Quality Management Platform",
        },
        timeout=timeout,
    )
    resp.raise_for_status()
    try:
        return resp.json()["choices"][0]["message"]["content"] or "No recommendation could be generated."
    except (ValueError, KeyError, IndexError, TypeError):
        raise InvalidUpstreamResponseError("OpenRouter response has no choices")


def get_recommendation(prompt: str, session: Optional[requests.Session] = None) -> dict:
    """
    Planning recommendation for prompt.

    MissingConfigurationError propagates; any upstream failure falls back to
    a fixed recommendation tagged with source "fallback".
    """
    try:
        return {"recommendation": call_openrouter(prompt, session=session)}
    except (requests.RequestException, InvalidUpstreamResponseError):
        logger.exception("OpenRouter request failed, using fallback recommendation")
        return {"recommendation": FALLBACK_RECOMMENDATION, "source": "fallback"}
