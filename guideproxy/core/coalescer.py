"""
Request coalescing for concurrent cache misses.

When several requests miss on the same key at once, only the first one
starts an upstream fetch; the rest await the same task and get the same
result (or the same exception).
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

log = logging.getLogger("coalescer")


class RequestCoalescer:
    """
    Single-flight map of cache key → in-flight asyncio task.

    Usage:
        coalescer = RequestCoalescer()
        outcome = await coalescer.run("matches.json", lambda: fetch_with_retry(spec))
    """

    def __init__(self):
        self._in_flight: dict[str, asyncio.Task] = {}

    async def run(self, key: str, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        task = self._in_flight.get(key)
        if task is not None:
            log.debug(f"Joining in-flight fetch for {key}")
        else:
            # Own task, so cancelling whichever request started it leaves the fetch running
            task = asyncio.ensure_future(fetch_fn())
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._finished(key, t))
        return await asyncio.shield(task)

    def _finished(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark retrieved so a failure nobody awaited doesn't warn on GC
        if not task.cancelled():
            task.exception()

    @property
    def active_requests(self) -> int:
        return len(self._in_flight)

    def get_stats(self) -> dict:
        return {
            "active_requests": len(self._in_flight),
            "active_keys":     list(self._in_flight.keys()),
        }
