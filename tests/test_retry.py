"""Tests for the retry helper and its backoff schedule."""

from unittest.mock import Mock, call

import pytest
import requests

from backend.app.errors import UpstreamUnavailableError
from backend.app.retry import DEFAULT_POLICY, RetryPolicy, call_with_retry


class TestRetryPolicy:

    def test_default_policy(self):
        assert DEFAULT_POLICY.max_attempts == 3
        assert DEFAULT_POLICY.base_delay == 1.0

    def test_linear_backoff(self):
        policy = RetryPolicy(max_attempts=4, base_delay=0.5)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [0.5, 1.0, 1.5]


class TestCallWithRetry:

    def test_first_attempt_succeeds(self):
        func = Mock(return_value="ok")
        sleep = Mock()
        assert call_with_retry(func, sleep=sleep) == "ok"
        assert func.call_count == 1
        sleep.assert_not_called()

    def test_recovers_after_failures(self):
        func = Mock(side_effect=[requests.ConnectionError("boom"), requests.Timeout("slow"), "ok"])
        sleep = Mock()
        assert call_with_retry(func, retry_on=(requests.RequestException,), sleep=sleep) == "ok"
        assert func.call_count == 3
        assert sleep.call_args_list == [call(1.0), call(2.0)]

    def test_exhausted_attempts(self):
        errors = [requests.ConnectionError(f"down {n}") for n in range(3)]
        func = Mock(side_effect=errors)
        sleep = Mock()

        with pytest.raises(UpstreamUnavailableError) as excinfo:
            call_with_retry(func, sleep=sleep, description="OpenWeather request")

        err = excinfo.value
        assert err.attempts == 3
        assert err.last_error is errors[-1]
        assert err.__cause__ is errors[-1]
        assert "after 3 attempts" in err.message
        assert "down 2" in err.message
        assert err.status_code == 500
        # no sleep after the final attempt
        assert sleep.call_args_list == [call(1.0), call(2.0)]

    def test_non_retryable_error_propagates(self):
        func = Mock(side_effect=KeyError("nope"))
        sleep = Mock()
        with pytest.raises(KeyError):
            call_with_retry(func, retry_on=(requests.RequestException,), sleep=sleep)
        assert func.call_count == 1
        sleep.assert_not_called()

    def test_sleeps_follow_policy(self):
        policy = RetryPolicy(max_attempts=4, base_delay=0.5)
        func = Mock(side_effect=requests.ConnectionError("down"))
        sleep = Mock()

        with pytest.raises(UpstreamUnavailableError) as excinfo:
            call_with_retry(func, policy=policy, sleep=sleep)

        assert excinfo.value.attempts == 4
        assert sleep.call_args_list == [call(policy.delay_for(n)) for n in (1, 2, 3)]

    def test_logs_each_failure(self, caplog):
        func = Mock(side_effect=[requests.Timeout("slow"), "ok"])
        with caplog.at_level("WARNING", logger="backend.app.retry"):
            call_with_retry(func, sleep=Mock(), description="Serper search")
        assert "Serper search failed (attempt 1/3): slow" in caplog.text

    def test_single_attempt_policy(self):
        func = Mock(side_effect=ValueError("bad"))
        sleep = Mock()
        with pytest.raises(UpstreamUnavailableError) as excinfo:
            call_with_retry(func, policy=RetryPolicy(max_attempts=1), sleep=sleep)
        assert excinfo.value.attempts == 1
        sleep.assert_not_called()
