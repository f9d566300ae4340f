# backend/app/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

from .errors import MissingConfigurationError

# Load .env from project root
project_root = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=project_root / ".env")

OPENWEATHER_API_KEY = "OPENWEATHER_API_KEY"
SERPER_API_KEY = "SERPER_API_KEY"
GEMINI_API_KEY = "GEMINI_API_KEY"
OPENROUTER_API_KEY = "OPENROUTER_API_KEY"

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
SERPER_URL = "https://google.serper.dev/search"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
OVERPASS_URL = "https://overpass-api.de/api/interpreter"

# San Francisco
DEFAULT_LAT = "37.7749"
DEFAULT_LON = "-122.4194"

# Ambattur, used when the news summary has no observation yet
NEWS_DEFAULT_LAT = "13.039835226912825"
NEWS_DEFAULT_LON = "80.17812278961485"

CURRENT_TIMEOUT = 25
DEFAULT_TIMEOUT = 30


def get_api_key(name: str) -> str:
    """Read an API key at call time; absence is an explicit configuration error."""
    value = os.getenv(name, "").strip()
    if not value:
        raise MissingConfigurationError(name)
    return value


def get_port() -> int:
    return int(os.getenv("PORT", "3001"))


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
