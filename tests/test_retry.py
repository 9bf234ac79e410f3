"""Tests for the retry helper."""
import httpx
import pytest

from core import retry
from core.errors import BackendError
from core.retry import is_retryable_error, with_retry


class Flaky:
    """Fails ``failures`` times with ``exc``, then returns 'ok'."""

    def __init__(self, failures: int, exc: Exception) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "ok"


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", fake_sleep)
    return recorded


class TestWithRetry:

    @pytest.mark.asyncio
    async def test_succeeds_after_retries(self, sleeps):
        fn = Flaky(2, RuntimeError("boom"))
        assert await with_retry(fn, max_retries=3) == "ok"
        assert fn.calls == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_delay_capped(self, sleeps):
        fn = Flaky(4, RuntimeError("boom"))
        await with_retry(fn, max_retries=4, initial_delay=3, max_delay=5)
        assert sleeps == [3, 5, 5, 5]

    @pytest.mark.asyncio
    async def test_zero_retries_is_single_attempt(self, sleeps):
        fn = Flaky(1, RuntimeError("boom"))
        with pytest.raises(RuntimeError):
            await with_retry(fn, max_retries=0)
        assert fn.calls == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self, sleeps):
        fn = Flaky(1, ValueError("bad input"))
        with pytest.raises(ValueError):
            await with_retry(fn, max_retries=5, retryable=is_retryable_error)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self, sleeps):
        fn = Flaky(10, RuntimeError("still down"))
        with pytest.raises(RuntimeError, match="still down"):
            await with_retry(fn, max_retries=2)
        assert fn.calls == 3


class TestIsRetryableError:

    @pytest.mark.parametrize("status", [429, 503, 504])
    def test_retryable_statuses(self, status):
        assert is_retryable_error(BackendError(status, "busy"))

    def test_client_errors_not_retryable(self):
        assert not is_retryable_error(BackendError(400, "bad request"))

    def test_network_errors(self):
        request = httpx.Request("POST", "https://api.test")
        assert is_retryable_error(httpx.ConnectError("reset", request=request))
        assert is_retryable_error(httpx.ReadTimeout("slow", request=request))

    def test_message_hints(self):
        assert is_retryable_error(RuntimeError("Rate limit exceeded"))
        assert is_retryable_error(RuntimeError("gateway timeout"))
        assert not is_retryable_error(RuntimeError("nope"))
