import asyncio

import pytest

from tafel.core.engine import retry
from tafel.core.engine.exceptions import TerminalRemoteError, TransientNetworkError


class Flaky:
    def __init__(self, *errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.fixture
def delays(monkeypatch):
    recorded = []

    async def sleep(delay):
        recorded.append(delay)

    monkeypatch.setattr(retry.asyncio, "sleep", sleep)
    return recorded


@pytest.mark.parametrize(
    "backoff,expected",
    [
        ("linear", [1.0, 2.0, 3.0]),
        ("exponential", [1.0, 2.0, 4.0]),
    ],
)
def test_backoff_delay(backoff, expected):
    assert [retry.backoff_delay(n, 1.0, backoff) for n in (1, 2, 3)] == expected


def test_backoff_delay_rejects_unknown_strategy():
    with pytest.raises(ValueError):
        retry.backoff_delay(1, 1.0, "fibonacci")


def test_success_first_time(delays):
    operation = Flaky()
    assert asyncio.run(retry.with_retry(operation, max_attempts=3)) == "ok"
    assert operation.calls == 1
    assert delays == []


def test_transient_errors_are_retried(delays):
    operation = Flaky(TransientNetworkError("timeout"), TransientNetworkError("timeout"))

    result = asyncio.run(
        retry.with_retry(operation, max_attempts=3, base_delay=0.5, backoff="exponential")
    )

    assert result == "ok"
    assert operation.calls == 3
    assert delays == [0.5, 1.0]


def test_gives_up_after_max_attempts(delays):
    operation = Flaky(*[TransientNetworkError("timeout")] * 5)

    with pytest.raises(TransientNetworkError):
        asyncio.run(retry.with_retry(operation, max_attempts=3, base_delay=1, backoff="linear"))

    assert operation.calls == 3
    assert delays == [1, 2]


def test_terminal_errors_are_not_retried(delays):
    operation = Flaky(TerminalRemoteError("forbidden"))

    with pytest.raises(TerminalRemoteError):
        asyncio.run(retry.with_retry(operation, max_attempts=5))

    assert operation.calls == 1
    assert delays == []


def test_custom_retry_predicate(delays):
    operation = Flaky(KeyError("x"))

    result = asyncio.run(
        retry.with_retry(
            operation,
            max_attempts=2,
            base_delay=0,
            is_retryable=lambda error: isinstance(error, KeyError),
        )
    )

    assert result == "ok"
    assert operation.calls == 2


def test_defaults_come_from_settings(settings, delays):
    settings.TAFEL_RETRY_MAX_ATTEMPTS = 2
    settings.TAFEL_RETRY_BASE_DELAY = 3
    settings.TAFEL_RETRY_BACKOFF = "linear"
    operation = Flaky(*[TransientNetworkError("timeout")] * 5)

    with pytest.raises(TransientNetworkError):
        asyncio.run(retry.with_retry(operation))

    assert operation.calls == 2
    assert delays == [3]


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        asyncio.run(retry.with_retry(Flaky(), max_attempts=0))
