# tests/test_retry.py
"""Tests for retry classification and exponential backoff."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from uw_tracker.services.retry import RetryConfig, is_retryable_error, with_retry


class _HttpError(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(f"HTTP {status}")
        self.status = status


@pytest.mark.parametrize(
    "error",
    [
        _HttpError(429),
        _HttpError(500),
        _HttpError(503),
        ConnectionError("reset by peer"),
        TimeoutError("timed out"),
        OperationalError("SELECT 1", {}, Exception("database is locked")),
    ],
)
def test_transient_errors_are_retryable(error: Exception) -> None:
    assert is_retryable_error(error)


@pytest.mark.parametrize(
    "error",
    [
        _HttpError(400),
        _HttpError(403),
        ValueError("bad input"),
        IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")),
    ],
)
def test_permanent_errors_are_not_retryable(error: Exception) -> None:
    assert not is_retryable_error(error)


def test_delay_grows_exponentially_and_caps() -> None:
    config = RetryConfig(base_delay=1.0, max_delay=10.0, backoff_multiplier=2.0)

    assert config.delay_for(0, rand=lambda: 0.0) == 1.0
    assert config.delay_for(1, rand=lambda: 0.0) == 2.0
    assert config.delay_for(2, rand=lambda: 0.0) == 4.0
    assert config.delay_for(10, rand=lambda: 0.0) == 10.0


def test_jitter_adds_at_most_twenty_percent() -> None:
    config = RetryConfig(base_delay=1.0, max_delay=10.0)

    assert config.delay_for(0, rand=lambda: 1.0) == pytest.approx(1.2)
    assert config.delay_for(3, rand=lambda: 1.0) == pytest.approx(9.6)
    for attempt in range(3):
        delay = config.delay_for(attempt)
        base = 2.0**attempt
        assert base <= delay <= base * 1.2


class _Flaky:
    def __init__(self, failures: list[Exception], result: str = "ok") -> None:
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.mark.asyncio
async def test_retries_until_success(fake_sleep, sleeps: list[float]) -> None:
    operation = _Flaky([ConnectionError("down"), TimeoutError("slow")])
    retried: list[int] = []

    result = await with_retry(
        operation,
        config=RetryConfig(max_attempts=3),
        sleep=fake_sleep,
        on_retry=lambda attempt, delay, exc: retried.append(attempt),
    )

    assert result == "ok"
    assert operation.calls == 3
    assert retried == [1, 2]
    assert len(sleeps) == 2
    assert 1.0 <= sleeps[0] <= 1.2
    assert 2.0 <= sleeps[1] <= 2.4


@pytest.mark.asyncio
async def test_exhausted_retries_reraise_last_error(fake_sleep, sleeps: list[float]) -> None:
    operation = _Flaky([ConnectionError("1"), ConnectionError("2"), ConnectionError("3")])

    with pytest.raises(ConnectionError, match="3"):
        await with_retry(operation, config=RetryConfig(max_attempts=3), sleep=fake_sleep)

    assert operation.calls == 3
    assert len(sleeps) == 2


@pytest.mark.asyncio
async def test_non_retryable_error_propagates_immediately(fake_sleep, sleeps: list[float]) -> None:
    operation = _Flaky([ValueError("quota exceeded")])

    with pytest.raises(ValueError):
        await with_retry(operation, config=RetryConfig(max_attempts=3), sleep=fake_sleep)

    assert operation.calls == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_custom_should_retry(fake_sleep) -> None:
    operation = _Flaky([ValueError("try again")])

    result = await with_retry(
        operation,
        config=RetryConfig(max_attempts=2),
        should_retry=lambda exc: isinstance(exc, ValueError),
        sleep=fake_sleep,
    )

    assert result == "ok"
    assert operation.calls == 2
