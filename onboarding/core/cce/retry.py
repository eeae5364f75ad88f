"""Bounded retry for fallible onboarding API calls.

Built on tenacity. A non-retryable error is re-raised unchanged after the
first attempt; retryable errors are retried with
``base_delay * backoff_multiplier ** (attempt - 1)`` seconds between attempts
until ``max_attempts`` is reached, at which point ``RetryExhaustedError``
reports the attempt count and the last error.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

import requests
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .cancellation import CancellationToken
from .exceptions import CCEAPIError, CCEResponseError, CCETransportError, RetryExhaustedError

logger = logging.getLogger(__name__)
T = TypeVar("T")

DEFAULT_MAX_REQUEST_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 2.0
DEFAULT_RETRY_BACKOFF_MULTIPLIER = 1.0

_TRANSIENT_SIGNATURES = ("timeout", "timed out", "connection", "eof", "reset by peer")
_TRANSIENT_REQUEST_ERRORS = (requests.ConnectionError, requests.Timeout, requests.exceptions.ChunkedEncodingError)


def is_retryable_error(error: BaseException) -> bool:
    """Return True for server errors, rate limits, and transient network failures.

    Client errors (4xx other than 429) are never retried, nor are bodies that
    failed to decode. A transport failure raised by requests is retried only
    for connection, timeout and broken-stream errors.
    """
    if isinstance(error, CCEAPIError):
        if error.status_code >= 500 or error.status_code == 429:
            return True
        return False
    if isinstance(error, CCEResponseError):
        return False
    if isinstance(error, CCETransportError) and isinstance(error.__cause__, requests.RequestException):
        return isinstance(error.__cause__, _TRANSIENT_REQUEST_ERRORS)
    message = str(error).lower()
    return any(signature in message for signature in _TRANSIENT_SIGNATURES)


@dataclass
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_REQUEST_RETRIES
    base_delay: float = DEFAULT_RETRY_DELAY_SECONDS
    backoff_multiplier: float = DEFAULT_RETRY_BACKOFF_MULTIPLIER
    retryable: Callable[[BaseException], bool] = is_retryable_error


class RetryExecutor:
    """Run an operation under a ``RetryPolicy``.

    Args:
        policy: Attempts, delays, and retryability predicate
        sleep: Blocking wait used between attempts (injectable for tests)
        cancel_token: When given, waits go through it and may be interrupted
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.policy = policy or RetryPolicy()
        if self.policy.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sleep = sleep
        self.cancel_token = cancel_token

    def _wait(self, seconds: float) -> None:
        if self.cancel_token is not None:
            self.cancel_token.wait(seconds)
        else:
            self._sleep(seconds)

    def execute(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Call ``operation`` until it succeeds, fails non-retryably, or attempts run out.

        Raises:
            RetryExhaustedError: Every attempt failed with a retryable error
            OperationCanceledError: The cancel token fired during a wait
        """
        def log_retry(retry_state: RetryCallState) -> None:
            logger.info(
                "Retrying %s in %.1fs (attempt %d/%d failed): %s",
                description,
                retry_state.next_action.sleep if retry_state.next_action else 0.0,
                retry_state.attempt_number,
                self.policy.max_attempts,
                retry_state.outcome.exception() if retry_state.outcome else None,
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=wait_exponential(multiplier=self.policy.base_delay, exp_base=self.policy.backoff_multiplier, min=0),
            retry=retry_if_exception(self.policy.retryable),
            sleep=self._wait,
            before_sleep=log_retry,
            reraise=False,
        )
        try:
            return retrying(operation)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            attempts = exc.last_attempt.attempt_number
            logger.warning("%s failed after %d attempts: %s", description, attempts, last_error)
            raise RetryExhaustedError(description, attempts, last_error) from last_error
