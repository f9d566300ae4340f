"""
Tests for the OpenWeather gateway.

The HTTP session and sleep are mocked, so no network access is needed.
"""

from unittest.mock import Mock, call

import pytest
import requests

from backend.app.air_quality import AirQualityGateway, parse_coordinates
from backend.app.errors import (
    InvalidCoordinatesError,
    InvalidUpstreamResponseError,
    MissingConfigurationError,
    UpstreamUnavailableError,
)
from backend.app.utils.simple_cache import ObservationStore


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def sleep():
    return Mock()


@pytest.fixture
def store():
    return ObservationStore()


@pytest.fixture
def gateway(session, sleep, store):
    return AirQualityGateway(store=store, session=session, sleep=sleep)


class TestParseCoordinates:

    def test_parses_strings(self):
        assert parse_coordinates(" 37.7749", "-122.4194 ") == (37.7749, -122.4194)

    def test_accepts_numbers(self):
        assert parse_coordinates(0, 180) == (0.0, 180.0)

    @pytest.mark.parametrize("lat,lon", [
        ("abc", "10"),
        ("10", ""),
        (None, "10"),
        ("nan", "10"),
        ("10", "inf"),
        ("90.5", "10"),
        ("10", "-180.1"),
    ])
    def test_rejects_invalid(self, lat, lon):
        with pytest.raises(InvalidCoordinatesError):
            parse_coordinates(lat, lon)


class TestGetCurrent:

    def test_converts_reading(self, gateway, session, make_response, owm_payload, owm_item):
        session.get.return_value = make_response(owm_payload(owm_item(aqi=2, dt=1700000000)))

        current = gateway.get_current("37.7749", "-122.4194")

        assert current.result.aqi == 42
        assert current.result.level == "Good"
        assert current.result.color == "green"
        assert current.result.source_aqi == 2
        assert current.timestamp == 1700000000 * 1000

        body = current.to_dict()
        assert body["location"] == {"lat": "37.7749", "lon": "-122.4194"}
        assert body["openWeatherAqi"] == 2
        assert body["components"]["pm2_5"] == 10.0

    def test_request_shape(self, gateway, session, make_response, owm_payload):
        session.get.return_value = make_response(owm_payload())
        gateway.get_current("37.7749", "-122.4194")

        args, kwargs = session.get.call_args
        assert args[0].endswith("/air_pollution")
        assert kwargs["params"] == {"lat": 37.7749, "lon": -122.4194, "appid": "test-owm-key"}
        assert kwargs["timeout"] == 25

    def test_records_observation(self, gateway, session, store, make_response, owm_payload, owm_item):
        session.get.return_value = make_response(owm_payload(owm_item(pm2_5=40, pm10=60, o3=50)))
        gateway.get_current("37.7749", "-122.4194")

        latest = store.latest()
        assert latest.aqi == 112
        assert latest.level == "Unhealthy for Sensitive Groups"
        assert store.get("37.7749", "-122.4194") == latest

    def test_record_false_leaves_store_untouched(self, gateway, session, store, make_response, owm_payload):
        session.get.return_value = make_response(owm_payload())
        gateway.get_current("37.7749", "-122.4194", record=False)
        assert store.latest() is None

    def test_invalid_coordinates_never_reach_upstream(self, gateway, session):
        with pytest.raises(InvalidCoordinatesError):
            gateway.get_current("abc", "10")
        session.get.assert_not_called()

    def test_missing_key(self, gateway, session, monkeypatch):
        monkeypatch.delenv("OPENWEATHER_API_KEY")
        with pytest.raises(MissingConfigurationError) as excinfo:
            gateway.get_current("37.7749", "-122.4194")
        assert "OPENWEATHER_API_KEY" in excinfo.value.message
        session.get.assert_not_called()

    def test_blank_key_is_missing(self, gateway, monkeypatch):
        monkeypatch.setenv("OPENWEATHER_API_KEY", "   ")
        with pytest.raises(MissingConfigurationError):
            gateway.get_current("37.7749", "-122.4194")

    def test_retries_transport_errors(self, gateway, session, sleep, make_response, owm_payload):
        session.get.side_effect = [
            requests.ConnectionError("reset"),
            requests.Timeout("slow"),
            make_response(owm_payload()),
        ]
        assert gateway.get_current("37.7749", "-122.4194").result.aqi == 42
        assert session.get.call_count == 3
        assert sleep.call_args_list == [call(1.0), call(2.0)]

    def test_empty_list_is_retried(self, gateway, session, sleep, make_response, owm_payload):
        session.get.side_effect = [
            make_response({"list": []}),
            make_response(owm_payload()),
        ]
        assert gateway.get_current("37.7749", "-122.4194").result.aqi == 42
        assert sleep.call_args_list == [call(1.0)]

    def test_gives_up_after_three_attempts(self, gateway, session, sleep, store):
        failures = [requests.ConnectionError(f"down {n}") for n in range(3)]
        session.get.side_effect = failures

        with pytest.raises(UpstreamUnavailableError) as excinfo:
            gateway.get_current("37.7749", "-122.4194")

        assert excinfo.value.attempts == 3
        assert excinfo.value.last_error is failures[-1]
        assert session.get.call_count == 3
        assert sleep.call_count == 2
        assert store.latest() is None

    def test_http_error_status_is_retried(self, gateway, session, make_response):
        session.get.return_value = make_response({"cod": 500}, status_code=500)
        with pytest.raises(UpstreamUnavailableError) as excinfo:
            gateway.get_current("37.7749", "-122.4194")
        assert isinstance(excinfo.value.last_error, requests.HTTPError)
        assert session.get.call_count == 3

    def test_malformed_components(self, gateway, session, make_response, owm_payload, owm_item):
        session.get.return_value = make_response(owm_payload(owm_item(pm2_5=-4)))
        with pytest.raises(UpstreamUnavailableError) as excinfo:
            gateway.get_current("37.7749", "-122.4194")
        assert isinstance(excinfo.value.last_error, InvalidUpstreamResponseError)

    def test_non_json_body(self, gateway, session, make_response):
        resp = make_response(None)
        resp.json.side_effect = ValueError("no json")
        session.get.return_value = resp
        with pytest.raises(UpstreamUnavailableError) as excinfo:
            gateway.get_current("37.7749", "-122.4194")
        assert isinstance(excinfo.value.last_error, InvalidUpstreamResponseError)


class TestGetComponents:

    def test_component_map(self, gateway, session, make_response, owm_payload, owm_item):
        session.get.return_value = make_response(owm_payload(owm_item(nh3=None)))

        result = gateway.get_components("37.7749", "-122.4194")

        assert set(result) == {"co", "no", "no2", "o3", "so2", "pm2_5", "pm10", "nh3"}
        assert result["pm2_5"] == {"value": 10.0, "unit": "μg/m³", "name": "Fine Particles"}
        assert result["o3"]["name"] == "Ozone"
        assert result["nh3"]["value"] is None

    def test_timeout(self, gateway, session, make_response, owm_payload):
        session.get.return_value = make_response(owm_payload())
        gateway.get_components("37.7749", "-122.4194")
        assert session.get.call_args.kwargs["timeout"] == 30

    def test_does_not_record(self, gateway, session, store, make_response, owm_payload):
        session.get.return_value = make_response(owm_payload())
        gateway.get_components("37.7749", "-122.4194")
        assert store.latest() is None


class TestGetForecast:

    def test_keeps_first_24_hours(self, gateway, session, make_response, owm_payload, owm_item):
        items = [owm_item(pm2_5=float(n), dt=1700000000 + n * 3600) for n in range(30)]
        session.get.return_value = make_response(owm_payload(*items))

        forecast = gateway.get_forecast("37.7749", "-122.4194")

        assert len(forecast) == 24
        assert session.get.call_args.args[0].endswith("/air_pollution/forecast")
        timestamps = [point.timestamp for point in forecast]
        assert timestamps == sorted(timestamps)
        assert timestamps[0] == 1700000000 * 1000

    def test_each_point_converted(self, gateway, session, make_response, owm_payload, owm_item):
        session.get.return_value = make_response(owm_payload(
            owm_item(pm2_5=10, pm10=20, o3=15, aqi=1),
            owm_item(pm2_5=40, pm10=60, o3=50, aqi=3, dt=1700003600),
        ))

        first, second = gateway.get_forecast("37.7749", "-122.4194")

        assert (first.result.aqi, first.result.level) == (42, "Good")
        assert (second.result.aqi, second.result.color) == (112, "orange")
        body = second.to_dict()
        assert body["airQuality"] == 112
        assert body["openWeatherAqi"] == 3
        assert body["timestamp"] == 1700003600 * 1000

    def test_shorter_forecast_returned_as_is(self, gateway, session, make_response, owm_payload, owm_item):
        session.get.return_value = make_response(owm_payload(*[owm_item(dt=1700000000 + n) for n in range(5)]))
        assert len(gateway.get_forecast("37.7749", "-122.4194")) == 5
