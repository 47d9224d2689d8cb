"""
guideproxy/upstream/retry.py
Bounded retries with exponential backoff around fetcher.fetch().

  attempt 1 → fail → sleep 1s → attempt 2 → fail → sleep 2s → attempt 3 → fail → raise

No sleep after the final attempt. The raised UpstreamError carries the
LAST failure seen.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable

from guideproxy.core.config import UpstreamRequestSpec
from guideproxy.core.errors import UpstreamError
from guideproxy.upstream import fetcher
from guideproxy.upstream.fetcher import FetchOutcome, Success

log = logging.getLogger("retry")

FetchFn = Callable[[UpstreamRequestSpec], Awaitable[FetchOutcome]]


async def fetch_with_retry(
    spec: UpstreamRequestSpec,
    retries: int = 3,
    initial_delay_s: float = 1.0,
    *,
    jitter: float = 0.0,
    fetch_fn: FetchFn | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Success:
    if retries < 1:
        raise ValueError("retries must be >= 1")

    fetch_fn = fetch_fn or fetcher.fetch
    delay = initial_delay_s
    last = None

    for attempt in range(1, retries + 1):
        outcome = await fetch_fn(spec)
        if isinstance(outcome, Success):
            if attempt > 1:
                log.info(f"{spec.path}: succeeded on attempt {attempt}/{retries}")
            return outcome

        last = outcome
        log.warning(f"Fetch attempt {attempt}/{retries} failed for {spec.path}: {outcome.message}")

        if attempt < retries:
            wait = delay + (random.uniform(0, jitter * delay) if jitter else 0.0)
            log.info(f"Waiting {wait:.2f}s before retry...")
            await sleep(wait)
            delay *= 2

    raise UpstreamError(last, attempts=retries)
