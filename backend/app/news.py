# backend/app/news.py
"""
Air quality news: Serper search results plus a Gemini summary.

The summary reuses the most recent observation from the ObservationStore.
Upstream failures degrade to cached or canned content; missing credentials
are reported as configuration errors instead.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from . import config
from .air_quality import AirQualityGateway
from .errors import MissingConfigurationError, UpstreamUnavailableError, ValidationError
from .gemini import call_gemini
from .search import SearchResult, search_articles
from .utils.simple_cache import AirQualityObservation, ObservationStore, SimpleCache

logger = logging.getLogger(__name__)

RESPONSE_CACHE_TTL = 30 * 60
LOCATION_CACHE_TTL = 60 * 60

FALLBACK_OBSERVATION = AirQualityObservation(
    aqi=50,
    level="Moderate",
    components={"co": 200, "no": 0.5, "no2": 10, "o3": 50, "so2": 5, "pm2_5": 25, "pm10": 30, "nh3": 1.0},
    lat="0",
    lon="0",
    timestamp=0,
)


def generic_summary(location: str) -> str:
    return (
        f"The air quality in {location} varies based on urban pollution sources including vehicle "
        "emissions, industrial activities, and seasonal factors. While specific data may be limited, "
        "residents should monitor local air quality reports and take precautions during periods of poor "
        "air quality, especially those with respiratory conditions. Local environmental initiatives "
        "continue to address pollution through emission controls and urban greening efforts."
    )


def templated_summary(location: str, observation: AirQualityObservation) -> str:
    components = observation.components
    return (
        f"The current Air Quality Index (AQI) in {location} is {observation.aqi}, indicating "
        f"{observation.level} conditions. PM2.5 levels of {components.get('pm2_5')} μg/m³ and PM10 levels "
        f"of {components.get('pm10')} μg/m³ are the primary pollutants, which can cause respiratory "
        "irritation for sensitive groups. At this level, individuals with respiratory or heart conditions, "
        "the elderly, and children should limit prolonged outdoor exertion.\n\n"
        f"Recent reports indicate that {location}'s air quality is influenced by local traffic patterns, "
        "industrial activities, and regional weather conditions. Local authorities have implemented various "
        "measures including vehicle emission controls, industrial regulations, and urban greening initiatives "
        "to address pollution concerns. Air quality monitoring stations continue to track pollution levels, "
        "with data suggesting seasonal variations that residents should be aware of when planning outdoor "
        "activities."
    )


def mock_results(location: str, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()

    def fmt(days_ago: int) -> str:
        return (now - timedelta(days=days_ago)).strftime("%m/%d/%Y")

    return {
        "articles": [
            {
                "title": f"Air Quality Alert: Latest Updates for {location}",
                "summary": f"Recent reports show moderate to poor air quality levels in {location} due to "
                           "increased pollution. Local authorities recommend limiting outdoor activities "
                           "during peak hours.",
                "source": "Environmental News Network",
                "url": "https://example.com/air-quality-update",
                "date": fmt(0),
            },
            {
                "title": f"{location} Takes Measures to Improve Air Quality",
                "summary": f"The city of {location} has implemented new emission reduction measures targeting "
                           "industrial facilities and vehicular traffic. Early data suggests a 10% improvement "
                           "in air quality readings over the past month.",
                "source": "City Environment Department",
                "url": "https://example.com/emission-measures",
                "date": fmt(7),
            },
            {
                "title": "Health Effects of Poor Air Quality on Urban Residents",
                "summary": "Medical researchers have noted increased respiratory complaints in areas with poor "
                           "air quality. Vulnerable populations are advised to use air purifiers indoors and "
                           "check daily air quality forecasts.",
                "source": "Public Health Journal",
                "url": "https://example.com/health-effects",
                "date": fmt(14),
            },
        ],
        "aiSummary": f"Air quality in {location} has shown moderate to poor levels in recent months. Primary "
                     "pollutants include particulate matter (PM2.5) and nitrogen dioxide from vehicle emissions "
                     "and industrial activities. Residents with respiratory conditions are advised to limit "
                     "outdoor activities during peak pollution hours. Local authorities have implemented "
                     "emission reduction measures that may improve conditions in coming months.",
    }


def build_prompt(location: str, observation: AirQualityObservation, results: List[SearchResult]) -> str:
    c = observation.components
    readings = "\n".join([
        f"Current Air Quality Index (AQI): {observation.aqi}",
        f"Quality Level: {observation.level}",
        "Pollutant Components:",
        f"- PM2.5 (Fine particles): {c.get('pm2_5')} μg/m³",
        f"- PM10 (Coarse particles): {c.get('pm10')} μg/m³",
        f"- O3 (Ozone): {c.get('o3')} μg/m³",
        f"- NO2 (Nitrogen Dioxide): {c.get('no2')} μg/m³",
        f"- SO2 (Sulfur Dioxide): {c.get('so2')} μg/m³",
        f"- CO (Carbon Monoxide): {c.get('co')} μg/m³",
    ])
    articles = "\n\n".join(f"Article: {r.title}\nSummary: {r.snippet}" for r in results)
    return (
        f"Create a comprehensive air quality summary for {location} using the data provided below.\n\n"
        "Your summary MUST be structured in exactly TWO paragraphs:\n\n"
        f"PARAGRAPH 1: Analyze the OpenWeather data provided. You MUST mention the specific AQI value of "
        f"{observation.aqi} and the air quality level \"{observation.level}\". Explain what this means for "
        f"residents and which pollutants (like PM2.5 at {c.get('pm2_5')} μg/m³) are most significant.\n\n"
        "PARAGRAPH 2: Summarize key points from the news articles, focusing on local pollution sources, "
        f"health impacts, and improvement initiatives in {location} or nearby areas.\n\n"
        "Be factual and concise. NEVER say data is unavailable - work with the data provided.\n\n"
        f"OpenWeather Data:\n{readings}\n\n"
        f"News Information:\n{articles}"
    )


def parse_reading(aqi: Optional[str], level: Optional[str]):
    """aqi/level query overrides; both must be present to take effect."""
    if aqi is None or not level:
        return None
    try:
        return int(aqi), level
    except ValueError:
        raise ValidationError(f"aqi must be an integer, got {aqi!r}")


class NewsSummaryService:

    def __init__(
        self,
        gateway: AirQualityGateway,
        store: ObservationStore,
        search: Callable[[str], List[SearchResult]] = search_articles,
        summarize: Callable[[str], str] = call_gemini,
        response_cache: Optional[SimpleCache] = None,
        location_cache: Optional[SimpleCache] = None,
    ):
        self.gateway = gateway
        self.store = store
        self.search = search
        self.summarize = summarize
        self.response_cache = response_cache if response_cache is not None else SimpleCache(default_ttl=RESPONSE_CACHE_TTL)
        self.location_cache = location_cache if location_cache is not None else SimpleCache(default_ttl=LOCATION_CACHE_TTL)

    def get_air_quality_news(self, location: str = "global", aqi: Optional[str] = None,
                             level: Optional[str] = None) -> dict:
        reading = parse_reading(aqi, level)
        if reading and self.store.override_latest(*reading):
            logger.info("Updated stored air quality from query params: AQI=%s, Level=%s", *reading)

        latest = self.store.latest()
        cache_key = f"news-{location}-{latest.aqi if latest else 'unknown'}"
        cached = self.response_cache.get(cache_key)
        if cached is not None:
            logger.info("Using cached news data for %s", location)
            return cached

        location_key = location.lower()
        try:
            news = self._build(location, latest, location_key)
        except MissingConfigurationError:
            raise
        except Exception:
            logger.exception("Error building air quality news for %s", location)
            previous = self.location_cache.get(location_key, allow_expired=True)
            if previous is not None:
                logger.info("Falling back to cached news data for %s", location)
                return previous
            logger.info("No cached news available, using mock results for %s", location)
            return mock_results(location)

        self.response_cache.set(cache_key, news)
        self.location_cache.set(location_key, news)
        return news

    def _build(self, location: str, observation: Optional[AirQualityObservation], location_key: str) -> dict:
        results = self.search(f"air quality pollution {location}")
        logger.info("Found %d articles for %s", len(results), location)

        if not results:
            previous = self.location_cache.get(location_key, allow_expired=True)
            if previous is not None:
                logger.info("No new articles found, using older cached data for %s", location)
                return previous

        if observation is None:
            observation = self._current_observation()

        return {
            "articles": [
                {
                    "title": r.title,
                    "summary": r.snippet,
                    "source": r.source,
                    "url": r.link,
                    "date": r.date or "Recent",
                }
                for r in results
            ],
            "aiSummary": self._summary(location, observation, results),
        }

    def _current_observation(self) -> AirQualityObservation:
        logger.info("No stored observation, fetching current air quality for the default location")
        try:
            current = self.gateway.get_current(config.NEWS_DEFAULT_LAT, config.NEWS_DEFAULT_LON, record=False)
        except UpstreamUnavailableError:
            logger.exception("Error fetching current air quality, using fallback observation")
            return FALLBACK_OBSERVATION
        return current.to_observation()

    def _summary(self, location: str, observation: AirQualityObservation, results: List[SearchResult]) -> str:
        try:
            return self.summarize(build_prompt(location, observation, results))
        except MissingConfigurationError:
            raise
        except Exception:
            logger.exception("Error generating AI summary for %s", location)
            return templated_summary(location, observation)


def fallback_body(location: Optional[str]) -> dict:
    return {
        "error": "Failed to fetch news data",
        "articles": [],
        "aiSummary": generic_summary(location or "your area"),
    }
