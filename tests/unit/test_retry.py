import pytest
import requests

from onboarding.core.cce.cancellation import CancellationToken
from onboarding.core.cce.exceptions import (
    CCEAPIError,
    CCEResponseError,
    CCETransportError,
    CCEValidationError,
    OperationCanceledError,
    RetryExhaustedError,
)
from onboarding.core.cce.retry import RetryExecutor, RetryPolicy, is_retryable_error

from tests.conftest import api_error


class FlakyOperation:
    """Fails with the queued errors, then returns ``result``."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def make_executor(sleeps, **policy):
    return RetryExecutor(RetryPolicy(**policy), sleep=sleeps.append)


@pytest.mark.parametrize("status", [500, 502, 503, 429])
def test_server_errors_and_rate_limits_are_retryable(status):
    assert is_retryable_error(api_error(status))


@pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422])
def test_client_errors_are_not_retryable(status):
    assert not is_retryable_error(api_error(status, message="connection timeout"))


@pytest.mark.parametrize("message", [
    "read timeout",
    "Connection refused",
    "unexpected EOF",
    "connection reset by peer",
])
def test_transient_transport_messages_are_retryable(message):
    assert is_retryable_error(CCETransportError(message))


def test_other_errors_are_not_retryable():
    assert not is_retryable_error(CCEValidationError("bad account id"))
    assert not is_retryable_error(KeyError("services"))


def transport_error(cause):
    error = CCETransportError(f"GET https://acme.example failed: {cause}")
    error.__cause__ = cause
    return error


@pytest.mark.parametrize("cause", [
    requests.ConnectionError("Connection refused"),
    requests.ReadTimeout("read timed out"),
    requests.exceptions.ChunkedEncodingError("stream ended early"),
])
def test_transient_requests_failures_are_retryable(cause):
    assert is_retryable_error(transport_error(cause))


@pytest.mark.parametrize("cause", [
    requests.exceptions.InvalidSchema("No connection adapters were found for 'ftp://acme'"),
    requests.exceptions.MissingSchema("Invalid URL 'acme': No scheme supplied"),
])
def test_malformed_url_failures_are_not_retryable(cause):
    assert not is_retryable_error(transport_error(cause))


def test_undecodable_body_is_not_retryable():
    error = CCEResponseError(200, "https://acme.example/connection-eof", "Expecting value")
    assert not is_retryable_error(error)


def test_succeeds_without_sleeping(sleeps):
    op = FlakyOperation([])
    assert make_executor(sleeps).execute(op) == "ok"
    assert op.calls == 1
    assert sleeps == []


def test_retryable_then_success(sleeps):
    op = FlakyOperation([api_error(503), api_error(503)])
    assert make_executor(sleeps, max_attempts=3, base_delay=2).execute(op) == "ok"
    assert op.calls == 3
    assert sleeps == [2, 2]


def test_non_retryable_error_raised_after_one_attempt(sleeps):
    error = api_error(400, message="must keep at least one service")
    op = FlakyOperation([error])
    with pytest.raises(CCEAPIError) as exc_info:
        make_executor(sleeps).execute(op)
    assert exc_info.value is error
    assert op.calls == 1
    assert sleeps == []


def test_exhaustion_reports_attempts_and_last_error(sleeps):
    last = api_error(500, message="third")
    op = FlakyOperation([api_error(500, message="first"), api_error(500, message="second"), last])
    with pytest.raises(RetryExhaustedError) as exc_info:
        make_executor(sleeps, max_attempts=3, base_delay=2).execute(op, description="get account abc")
    assert exc_info.value.attempts == 3
    assert exc_info.value.last_error is last
    assert "get account abc failed after 3 attempts" in str(exc_info.value)
    assert op.calls == 3
    assert sleeps == [2, 2]


def test_backoff_multiplier_grows_delay(sleeps):
    op = FlakyOperation([api_error(503)] * 3)
    make_executor(sleeps, max_attempts=4, base_delay=1, backoff_multiplier=2).execute(op)
    assert sleeps == [1, 2, 4]


def test_custom_predicate(sleeps):
    op = FlakyOperation([ValueError("flaky")])
    executor = make_executor(sleeps, retryable=lambda exc: isinstance(exc, ValueError), base_delay=0)
    assert executor.execute(op) == "ok"
    assert op.calls == 2


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryExecutor(RetryPolicy(max_attempts=0))


def test_cancelled_token_aborts_wait():
    token = CancellationToken()
    token.cancel()
    op = FlakyOperation([api_error(503)])
    executor = RetryExecutor(RetryPolicy(base_delay=5), cancel_token=token)
    with pytest.raises(OperationCanceledError):
        executor.execute(op)
    assert op.calls == 1
