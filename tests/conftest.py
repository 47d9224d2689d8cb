"""
Shared fixtures: a controllable clock, a scripted upstream and a FeedProxy
wired to both, plus a TestClient with the proxy dependency overridden.
"""
import json

import pytest
from fastapi.testclient import TestClient

from guideproxy.core.cache import TTLCache
from guideproxy.core.config import build_specs
from guideproxy.core.proxy import FeedProxy, get_proxy
from guideproxy.main import app
from guideproxy.upstream.fetcher import Failure, FailureKind, Success


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """
    Async stand-in for fetcher.fetch.  Each path gets a queue of outcomes;
    the last one repeats once the queue is down to a single item.
    """

    def __init__(self):
        self.outcomes: dict[str, list] = {}
        self.calls: list[str] = []

    def respond(self, key: str, *outcomes) -> None:
        self.outcomes[key] = list(outcomes)

    def calls_for(self, key: str) -> int:
        return sum(1 for c in self.calls if c.endswith(f"/{key}"))

    async def __call__(self, spec):
        key = spec.path.rsplit("/", 1)[-1]
        self.calls.append(spec.path)
        queue = self.outcomes.get(key)
        if not queue:
            return Failure(FailureKind.NETWORK, "connect ECONNREFUSED")
        return queue.pop(0) if len(queue) > 1 else queue[0]


async def no_sleep(_seconds: float) -> None:
    return None


def ok(data, status: int = 200) -> Success:
    return Success(status=status, body=json.dumps(data).encode(), data=data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def proxy(clock, upstream):
    return FeedProxy(
        build_specs(),
        TTLCache(300, clock=clock),
        retries=3,
        initial_delay_s=1.0,
        fetch_fn=upstream,
        sleep=no_sleep,
    )


@pytest.fixture
def client(proxy):
    app.dependency_overrides[get_proxy] = lambda: proxy
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
