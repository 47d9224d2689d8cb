"""
guideproxy/core/http_client.py
Shared async httpx client for the upstream feed host.
  • upstream_client() → lazily created, reused across requests
  • close_all()       → called from the app lifespan on shutdown

Per-request timeouts come from UpstreamRequestSpec, not from the client.
"""

import httpx

from guideproxy.core.config import UPSTREAM_TIMEOUT_S

_upstream_client: httpx.AsyncClient | None = None

_LIMITS  = httpx.Limits(max_connections=10, max_keepalive_connections=5)
_TIMEOUT = httpx.Timeout(UPSTREAM_TIMEOUT_S, connect=10.0)


def upstream_client() -> httpx.AsyncClient:
    global _upstream_client
    if _upstream_client is None or _upstream_client.is_closed:
        _upstream_client = httpx.AsyncClient(
            timeout=_TIMEOUT,
            follow_redirects=True,
            limits=_LIMITS,
        )
    return _upstream_client


async def close_all() -> None:
    global _upstream_client
    if _upstream_client and not _upstream_client.is_closed:
        await _upstream_client.aclose()
    _upstream_client = None
