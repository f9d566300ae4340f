"""
Pytest configuration for the air quality backend tests.

Provides API key setup and builders for fake upstream HTTP responses.
"""

from unittest.mock import Mock

import pytest
import requests

API_KEYS = {
    "OPENWEATHER_API_KEY": "test-owm-key",
    "SERPER_API_KEY": "test-serper-key",
    "GEMINI_API_KEY": "test-gemini-key",
    "OPENROUTER_API_KEY": "test-openrouter-key",
}


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(autouse=True)
def api_keys(monkeypatch):
    """All upstream credentials present unless a test removes one."""
    for name, value in API_KEYS.items():
        monkeypatch.setenv(name, value)
    return API_KEYS


@pytest.fixture
def make_response():
    """Builder for a fake requests.Response."""
    def _make(payload, status_code=200):
        resp = Mock()
        resp.status_code = status_code
        resp.json.return_value = payload
        if status_code >= 400:
            resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
        else:
            resp.raise_for_status.return_value = None
        return resp
    return _make


@pytest.fixture
def owm_item():
    """Builder for one OpenWeather air_pollution list entry."""
    def _make(pm2_5=10.0, pm10=20.0, o3=15.0, aqi=1, dt=1700000000, **extra):
        components = {
            "co": 200.3,
            "no": 0.1,
            "no2": 5.2,
            "o3": o3,
            "so2": 1.1,
            "pm2_5": pm2_5,
            "pm10": pm10,
            "nh3": 0.5,
        }
        components.update(extra)
        return {"main": {"aqi": aqi}, "components": components, "dt": dt}
    return _make


@pytest.fixture
def owm_payload(owm_item):
    """Builder for a full OpenWeather air_pollution response body."""
    def _make(*items):
        return {"coord": {"lon": -122.4194, "lat": 37.7749}, "list": list(items) or [owm_item()]}
    return _make
