from __future__ import annotations

import asyncio

import pytest

from core.config import RetryConfig
from core.errors import TransportError
from core.sender import RateLimitedSender, RetryState
from fakes import AlwaysFailingNotifier, RecordedSleep, RecordingNotifier


def _throttled(retry_after=None) -> TransportError:
    return TransportError("Too Many Requests", status=429, retry_after=retry_after)


def test_server_hint_is_used_instead_of_backoff() -> None:
    notifier = RecordingNotifier(failures=[_throttled(retry_after=2)])
    sleep = RecordedSleep()

    asyncio.run(RateLimitedSender(notifier, sleep=sleep).send("hello"))

    assert sleep.delays == [2.0]
    assert notifier.sent == ["hello"]


def test_exponential_backoff_without_hint() -> None:
    notifier = RecordingNotifier(failures=[_throttled(), _throttled(), _throttled()])
    sleep = RecordedSleep()

    asyncio.run(RateLimitedSender(notifier, RetryConfig(max_retries=5, base_delay=1.0), sleep=sleep).send("hi"))

    assert sleep.delays == [1.0, 2.0, 4.0]
    assert notifier.calls == 4


def test_invalid_hint_falls_back_to_backoff() -> None:
    notifier = RecordingNotifier(failures=[_throttled(retry_after=float("nan")), _throttled(retry_after=-3)])
    sleep = RecordedSleep()

    asyncio.run(RateLimitedSender(notifier, sleep=sleep).send("hi"))

    assert sleep.delays == [1.0, 2.0]


def test_other_failures_are_not_retried() -> None:
    error = TransportError("Bad Request", status=400)
    notifier = AlwaysFailingNotifier(error)
    sleep = RecordedSleep()

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(RateLimitedSender(notifier, sleep=sleep).send("hi"))

    assert excinfo.value is error
    assert notifier.calls == 1
    assert sleep.delays == []


def test_exhausted_retries_reraise_last_throttle() -> None:
    error = _throttled(retry_after=1)
    notifier = AlwaysFailingNotifier(error)
    sleep = RecordedSleep()

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(RateLimitedSender(notifier, RetryConfig(max_retries=2), sleep=sleep).send("hi"))

    assert excinfo.value.status == 429
    assert notifier.calls == 3
    assert sleep.delays == [1.0, 1.0]


def test_retry_state_tracks_current_delay() -> None:
    state = RetryState(attempt=2)

    assert state.next_delay(_throttled(), base_delay=1.0) == 4.0
    assert state.delay == 4.0
    assert state.next_delay(_throttled(retry_after=7), base_delay=1.0) == 7.0
    assert state.delay == 7.0
