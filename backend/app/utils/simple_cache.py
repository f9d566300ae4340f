# backend/app/utils/simple_cache.py
import time
import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional


class SimpleCache:
    """
    Thread-safe in-memory TTL cache holding at most max_entries keys.

    Expired entries are dropped on read unless allow_expired is set; callers
    that want stale values back keep them only until the size cap evicts them,
    oldest write first.
    """

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.time, max_entries: int = 256):
        self._cache: "OrderedDict[str, tuple]" = OrderedDict()
        self._lock = threading.Lock()
        self._default_ttl = default_ttl
        self._clock = clock
        self._max_entries = max_entries

    def set(self, key: str, value, ttl: Optional[int] = None):
        expires = self._clock() + (self._default_ttl if ttl is None else ttl)
        with self._lock:
            self._cache[key] = (expires, value)
            self._cache.move_to_end(key)
            while len(self._cache) > self._max_entries:
                self._cache.popitem(last=False)

    def get(self, key: str, allow_expired: bool = False):
        with self._lock:
            rec = self._cache.get(key)
            if not rec:
                return None
            expires, val = rec
            if self._clock() > expires and not allow_expired:
                del self._cache[key]
                return None
            return val

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self):
        with self._lock:
            self._cache.clear()


@dataclass(frozen=True)
class AirQualityObservation:
    aqi: int
    level: str
    components: Dict[str, Any]
    lat: str
    lon: str
    timestamp: int

    def with_reading(self, aqi: int, level: str) -> "AirQualityObservation":
        return replace(self, aqi=aqi, level=level)

    def to_dict(self) -> dict:
        return {
            "aqi": self.aqi,
            "level": self.level,
            "components": self.components,
            "location": {"lat": self.lat, "lon": self.lon},
            "timestamp": self.timestamp,
        }


def location_key(lat, lon) -> str:
    try:
        return f"{float(lat):.4f},{float(lon):.4f}"
    except (TypeError, ValueError):
        return f"{lat},{lon}"


class ObservationStore:
    """
    Most recent air quality observation, shared by the gateway and the news summary.

    latest() is last-write-wins across all locations; get() looks one location up.
    At most max_locations are kept, the least recently written is evicted first.
    """

    def __init__(self, max_locations: int = 1024):
        self._lock = threading.Lock()
        self._latest: Optional[AirQualityObservation] = None
        self._by_location: "OrderedDict[str, AirQualityObservation]" = OrderedDict()
        self._max_locations = max_locations

    def _remember(self, observation: AirQualityObservation) -> None:
        key = location_key(observation.lat, observation.lon)
        self._by_location[key] = observation
        self._by_location.move_to_end(key)
        while len(self._by_location) > self._max_locations:
            self._by_location.popitem(last=False)

    def record(self, observation: AirQualityObservation) -> None:
        with self._lock:
            self._latest = observation
            self._remember(observation)

    def latest(self) -> Optional[AirQualityObservation]:
        with self._lock:
            return self._latest

    def get(self, lat, lon) -> Optional[AirQualityObservation]:
        with self._lock:
            return self._by_location.get(location_key(lat, lon))

    def override_latest(self, aqi: int, level: str) -> Optional[AirQualityObservation]:
        """Replace aqi/level of the latest observation, if there is one."""
        with self._lock:
            if self._latest is None:
                return None
            self._latest = self._latest.with_reading(aqi, level)
            self._remember(self._latest)
            return self._latest

    def clear(self) -> None:
        with self._lock:
            self._latest = None
            self._by_location.clear()
