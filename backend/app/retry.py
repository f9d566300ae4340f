# backend/app/retry.py
import logging
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from .errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed attempt budget with linear backoff (attempt * base_delay seconds)."""
    max_attempts: int = 3
    base_delay: float = 1.0

    def delay_for(self, attempt: int) -> float:
        return attempt * self.base_delay


DEFAULT_POLICY = RetryPolicy()


def call_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy = DEFAULT_POLICY,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    description: str = "upstream request",
) -> T:
    """
    Run func until it succeeds or the policy's attempts are used up.

    Exceptions outside retry_on propagate immediately. When every attempt
    fails, UpstreamUnavailableError is raised carrying the last cause.
    """
    def log_failure(retry_state):
        logger.warning("%s failed (attempt %d/%d): %s", description, retry_state.attempt_number,
                       policy.max_attempts, retry_state.outcome.exception())

    def log_retry(retry_state):
        logger.info("Retrying %s in %.1fs", description, retry_state.next_action.sleep)

    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_incrementing(start=policy.base_delay, increment=policy.base_delay),
        retry=retry_if_exception_type(retry_on),
        sleep=sleep,
        after=log_failure,
        before_sleep=log_retry,
        reraise=False,
    )
    try:
        return retrying(func)
    except RetryError as e:
        attempts = e.last_attempt.attempt_number
        last_error = e.last_attempt.exception()
        logger.error("%s failed after %d attempts", description, attempts)
        raise UpstreamUnavailableError(description, attempts, last_error) from last_error
