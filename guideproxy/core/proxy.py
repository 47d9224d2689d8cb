"""
guideproxy/core/proxy.py
═══════════════════════════════════════════════════════════════════════════════
Cache-checked proxy for the upstream feeds.

  request K ─► cache hit?  ── yes ─► 200 body, X-Cache: HIT
                  │ no
                  ▼
           single-flight fetch_with_retry(spec[K])
                  │ ok                          │ failed after retries
                  ▼                             ▼
           shape check (normalizer)      504 / 500 / upstream status / 502
           cache.set(K, body)            {error, code, endpoint} — never cached
           200 body, X-Cache: MISS

One FeedProxy lives on app.state for the life of the process.
═══════════════════════════════════════════════════════════════════════════════
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from guideproxy.core.cache import TTLCache
from guideproxy.core.coalescer import RequestCoalescer
from guideproxy.core.config import UpstreamRequestSpec, endpoint_name
from guideproxy.core.errors import ShapeError, UpstreamError
from guideproxy.upstream.fetcher import FailureKind
from guideproxy.upstream.normalizer import normalize
from guideproxy.upstream.retry import FetchFn, fetch_with_retry

log = logging.getLogger("proxy")

_STATUS_FOR = {
    FailureKind.TIMEOUT:      504,
    FailureKind.NETWORK:      500,
    FailureKind.INVALID_JSON: 502,
}


@dataclass
class ProxyResponse:
    status:       int
    body:         bytes
    cache_status: Optional[str] = None
    headers:      dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == 200


def _error_body(message: str, code: str, endpoint: str, **extra) -> bytes:
    return json.dumps({"error": message, "code": code, "endpoint": endpoint, **extra}).encode()


def _upstream_payload(body: Optional[bytes]):
    """Upstream error body as JSON if it parses, else as text."""
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")


class FeedProxy:
    def __init__(
        self,
        specs: dict[str, UpstreamRequestSpec],
        cache: TTLCache,
        *,
        retries: int = 3,
        initial_delay_s: float = 1.0,
        jitter: float = 0.0,
        fetch_fn: FetchFn | None = None,
        sleep=None,
    ):
        self.specs     = specs
        self.cache     = cache
        self.coalescer = RequestCoalescer()
        self._retry_kwargs = {
            "retries":         retries,
            "initial_delay_s": initial_delay_s,
            "jitter":          jitter,
            "fetch_fn":        fetch_fn,
        }
        if sleep is not None:
            self._retry_kwargs["sleep"] = sleep
        self.upstream_calls = 0

    async def _fetch(self, key: str):
        self.upstream_calls += 1
        return await fetch_with_retry(self.specs[key], **self._retry_kwargs)

    async def get(self, key: str) -> ProxyResponse:
        if key not in self.specs:
            return ProxyResponse(404, _error_body(f"Unknown endpoint: {key}", "UNKNOWN_ENDPOINT", key))

        cached = self.cache.get(key)
        if cached is not None:
            log.debug(f"Cache HIT for {key}")
            return ProxyResponse(200, cached, "HIT")

        log.info(f"Cache MISS for {key} — fetching upstream")
        try:
            outcome = await self.coalescer.run(key, lambda: self._fetch(key))
        except UpstreamError as ex:
            return self._failure_response(key, ex)
        except Exception as ex:
            log.exception(f"Unexpected error proxying {key}")
            return ProxyResponse(500, _error_body(str(ex) or "Internal error", "INTERNAL_ERROR", key), "MISS")

        try:
            records = normalize(key, outcome.data)
            log.info(f"{key}: {len(records)} records from upstream")
        except ShapeError as ex:
            log.warning(f"{key}: {ex} — serving body as-is")

        # Joined waiters land here too; the last writer wins, same bytes either way
        self.cache.set(key, outcome.body)
        return ProxyResponse(200, outcome.body, "MISS")

    def _failure_response(self, key: str, ex: UpstreamError) -> ProxyResponse:
        failure = ex.failure
        log.error(f"Upstream failed for {key} after {ex.attempts} attempts: {failure.message}")

        if failure.kind is FailureKind.INVALID_JSON:
            # Raw body goes back to the client untouched, never into the cache
            return ProxyResponse(502, failure.body or b"", "MISS", {"X-Upstream-Error": failure.kind.value})

        if failure.kind is FailureKind.HTTP:
            status = failure.status or 500
            body = _error_body(
                failure.message, failure.kind.value, key,
                status=status, upstream=_upstream_payload(failure.body),
            )
            return ProxyResponse(status, body, "MISS")

        status = _STATUS_FOR.get(failure.kind, 500)
        return ProxyResponse(status, _error_body(failure.message, failure.kind.value, key), "MISS")

    async def records(self, key: str) -> tuple[ProxyResponse, list]:
        """
        Normalized records for key.  A payload with no usable array
        degrades to [] rather than an error.
        """
        resp = await self.get(key)
        if not resp.ok:
            return resp, []
        try:
            return resp, normalize(key, json.loads(resp.body))
        except ShapeError as ex:
            log.warning(f"{endpoint_name(key)}: {ex} — returning empty list")
            return resp, []

    def clear(self) -> int:
        n = self.cache.clear()
        log.info(f"Cache cleared ({n} entries dropped)")
        return n

    @staticmethod
    def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    def stats(self) -> dict:
        return {
            **self.cache.stats(),
            "upstream_calls": self.upstream_calls,
            "in_flight":      self.coalescer.get_stats(),
        }


def get_proxy(request: Request) -> FeedProxy:
    """FastAPI dependency — the FeedProxy created in the app lifespan."""
    return request.app.state.proxy
