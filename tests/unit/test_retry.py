"""Tests for retry classification, backoff and the two named policies."""
from dataclasses import replace
from types import SimpleNamespace

import pytest

from tests.mocks.api_mocks import MockAPIStatusError
from voicenotes.utils.retry import (
    COMPLETION_RETRY_POLICY,
    TRANSCRIPTION_RETRY_POLICY,
    RetryAbortedError,
    RetryConfig,
    RetryExhaustedError,
    calculate_delay,
    call_with_retry,
    get_status_code,
    is_connection_or_server_error,
)

NO_DELAY = {"base_delay": 0.0, "max_delay": 0.0}


class Flaky:
    """Coroutine callable failing with the given errors before succeeding."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self, value="ok"):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return value


class TestClassification:
    def test_connection_reset_is_retryable(self):
        assert is_connection_or_server_error(Exception("read ECONNRESET"))

    def test_connection_error_is_retryable_case_insensitive(self):
        assert is_connection_or_server_error(Exception("Connection error."))

    def test_server_status_is_retryable(self):
        assert is_connection_or_server_error(MockAPIStatusError("boom", 503))

    def test_client_status_is_not_retryable(self):
        assert not is_connection_or_server_error(MockAPIStatusError("bad request", 400))

    def test_plain_error_is_not_retryable(self):
        assert not is_connection_or_server_error(ValueError("Invalid file format"))

    def test_status_read_from_response(self):
        error = Exception("nested")
        error.response = SimpleNamespace(status_code=502)
        assert get_status_code(error) == 502
        assert is_connection_or_server_error(error)

    def test_no_status(self):
        assert get_status_code(Exception("x")) is None


class TestRetryConfig:
    def test_policies_are_distinct(self):
        assert TRANSCRIPTION_RETRY_POLICY.max_attempts == 3
        assert COMPLETION_RETRY_POLICY.max_attempts == 3
        assert not TRANSCRIPTION_RETRY_POLICY.should_retry(ValueError("nope"))
        assert COMPLETION_RETRY_POLICY.should_retry(ValueError("nope"))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"base_delay": -1},
            {"base_delay": 5, "max_delay": 1},
            {"exponential_base": 0.5},
            {"max_attempts": 11},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)

    def test_delay_grows_and_is_capped(self):
        assert calculate_delay(0, 1.0, 10.0, 2.0, jitter=False) == 0.0
        assert calculate_delay(1, 1.0, 10.0, 2.0, jitter=False) == 1.0
        assert calculate_delay(3, 1.0, 10.0, 2.0, jitter=False) == 4.0
        assert calculate_delay(10, 1.0, 10.0, 2.0, jitter=False) == 10.0

    def test_jitter_stays_within_bounds(self):
        for _ in range(50):
            delay = calculate_delay(2, 1.0, 10.0, 2.0, jitter=True)
            assert 1.5 <= delay <= 2.5


class TestCallWithRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = Flaky(Exception("Connection error"))
        policy = replace(TRANSCRIPTION_RETRY_POLICY, **NO_DELAY)

        assert await call_with_retry(func, "text", config=policy) == "text"
        assert func.calls == 2

    @pytest.mark.asyncio
    async def test_non_retryable_error_bails_after_one_attempt(self):
        func = Flaky(MockAPIStatusError("Invalid file format", 400))
        policy = replace(TRANSCRIPTION_RETRY_POLICY, **NO_DELAY)

        with pytest.raises(RetryAbortedError) as exc_info:
            await call_with_retry(func, config=policy)

        assert func.calls == 1
        assert exc_info.value.attempts == 1
        assert exc_info.value.last_exception.status_code == 400

    @pytest.mark.asyncio
    async def test_retryable_error_exhausts_budget(self):
        func = Flaky(*[MockAPIStatusError("server", 500)] * 5)
        policy = replace(TRANSCRIPTION_RETRY_POLICY, **NO_DELAY)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await call_with_retry(func, config=policy)

        assert func.calls == 3
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_completion_policy_retries_any_error(self):
        func = Flaky(ValueError("bad json"), KeyError("missing"))
        policy = replace(COMPLETION_RETRY_POLICY, **NO_DELAY)

        assert await call_with_retry(func, config=policy) == "ok"
        assert func.calls == 3
