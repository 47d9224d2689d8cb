"""
Retry wrapper: attempt bound, backoff schedule, last-failure surfacing.
"""
import asyncio

import pytest

from guideproxy.core.config import build_spec
from guideproxy.core.errors import UpstreamError
from guideproxy.upstream.fetcher import Failure, FailureKind, Success
from guideproxy.upstream.retry import fetch_with_retry

SPEC = build_spec("matches")


class Script:
    """Returns the scripted outcomes in order and records each call."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self, spec):
        self.calls += 1
        return self.outcomes.pop(0)


class Sleeps:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _fail(n):
    return Failure(FailureKind.NETWORK, f"failure #{n}")


def _run(coro):
    return asyncio.run(coro)


def test_always_failing_makes_exactly_three_attempts():
    script = Script(_fail(1), _fail(2), _fail(3))
    sleeps = Sleeps()
    with pytest.raises(UpstreamError) as exc:
        _run(fetch_with_retry(SPEC, retries=3, initial_delay_s=1.0, fetch_fn=script, sleep=sleeps))
    assert script.calls == 3
    assert exc.value.attempts == 3


def test_last_failure_is_surfaced():
    script = Script(
        Failure(FailureKind.TIMEOUT, "first"),
        _fail(2),
        Failure(FailureKind.HTTP, "HTTP error! Status: 503", status=503),
    )
    with pytest.raises(UpstreamError) as exc:
        _run(fetch_with_retry(SPEC, fetch_fn=script, sleep=Sleeps()))
    assert exc.value.kind is FailureKind.HTTP
    assert exc.value.status == 503
    assert str(exc.value) == "HTTP error! Status: 503"


def test_backoff_doubles_with_no_trailing_sleep():
    sleeps = Sleeps()
    with pytest.raises(UpstreamError):
        _run(fetch_with_retry(
            SPEC, retries=3, initial_delay_s=1.0,
            fetch_fn=Script(_fail(1), _fail(2), _fail(3)), sleep=sleeps,
        ))
    assert sleeps.delays == [1.0, 2.0]


def test_longer_retry_chain_keeps_doubling():
    sleeps = Sleeps()
    with pytest.raises(UpstreamError):
        _run(fetch_with_retry(
            SPEC, retries=5, initial_delay_s=0.5,
            fetch_fn=Script(*[_fail(i) for i in range(5)]), sleep=sleeps,
        ))
    assert sleeps.delays == [0.5, 1.0, 2.0, 4.0]


def test_success_returns_immediately():
    win = Success(200, b"[]", [])
    script = Script(win, _fail(2))
    sleeps = Sleeps()
    result = _run(fetch_with_retry(SPEC, fetch_fn=script, sleep=sleeps))
    assert result is win
    assert script.calls == 1
    assert sleeps.delays == []


def test_success_after_one_failure():
    win = Success(200, b"[1]", [1])
    script = Script(_fail(1), win)
    sleeps = Sleeps()
    result = _run(fetch_with_retry(SPEC, fetch_fn=script, sleep=sleeps))
    assert result is win
    assert script.calls == 2
    assert sleeps.delays == [1.0]


def test_jitter_stays_within_fraction_of_delay():
    sleeps = Sleeps()
    with pytest.raises(UpstreamError):
        _run(fetch_with_retry(
            SPEC, retries=3, initial_delay_s=1.0, jitter=0.5,
            fetch_fn=Script(_fail(1), _fail(2), _fail(3)), sleep=sleeps,
        ))
    first, second = sleeps.delays
    assert 1.0 <= first <= 1.5
    assert 2.0 <= second <= 3.0


def test_zero_retries_rejected():
    with pytest.raises(ValueError):
        _run(fetch_with_retry(SPEC, retries=0, fetch_fn=Script(), sleep=Sleeps()))
