# backend/app/search.py
import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

import requests

from . import config

logger = logging.getLogger(__name__)

MAX_RESULTS = 8
MIN_SNIPPET_LENGTH = 30
EXCLUDED_LINKS = ("youtube.com", "google.com/search", "pinterest.com")


@dataclass(frozen=True)
class SearchResult:
    title: str
    link: str
    snippet: str
    position: int
    source: str
    date: Optional[str] = None


def _is_article(result: SearchResult) -> bool:
    if any(excluded in result.link for excluded in EXCLUDED_LINKS):
        return False
    return len(result.snippet) > MIN_SNIPPET_LENGTH


def search_articles(query: str, session: Optional[requests.Session] = None, timeout: int = 15) -> List[SearchResult]:
    """Search Serper for news-like articles about query."""
    api_key = config.get_api_key(config.SERPER_API_KEY)
    http = session or requests
    resp = http.post(
        config.SERPER_URL,
        json={"q": f"{query} latest news report data", "gl": "us", "hl": "en"},
        headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
        timeout=timeout,
    )
    resp.raise_for_status()
    organic = (resp.json() or {}).get("organic") or []

    results = []
    for index, item in enumerate(organic, start=1):
        link = item.get("link")
        if not link:
            continue
        hostname = urlparse(link).hostname or ""
        results.append(SearchResult(
            title=item.get("title") or "Untitled",
            link=link,
            snippet=item.get("snippet") or "",
            position=index,
            source=hostname.replace("www.", ""),
            date=item.get("date"),
        ))
    articles = [r for r in results if _is_article(r)][:MAX_RESULTS]
    logger.info("Serper returned %d results, kept %d articles", len(organic), len(articles))
    return articles
