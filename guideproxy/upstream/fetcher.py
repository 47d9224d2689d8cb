"""
guideproxy/upstream/fetcher.py
═══════════════════════════════════════════════════════════════════════════════
One GET against the upstream feed, classified into a FetchOutcome.

  2xx + valid JSON   → Success(status, body, data)
  2xx + junk body    → Failure(INVALID_JSON, body=raw)
  non-2xx            → Failure(HTTP, status, body=raw)   (payload kept for the client)
  timeout            → Failure(TIMEOUT)    (total deadline, not per read)
  DNS / refused / …  → Failure(NETWORK, message)

Never raises for upstream problems and never touches the cache.
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

import httpx

from guideproxy.core.config import UpstreamRequestSpec
from guideproxy.core.http_client import upstream_client

log = logging.getLogger("fetcher")


class FailureKind(Enum):
    TIMEOUT      = "TIMEOUT"
    NETWORK      = "NETWORK_ERROR"
    HTTP         = "HTTP_ERROR"
    INVALID_JSON = "INVALID_JSON"


@dataclass(frozen=True)
class Success:
    status: int
    body:   bytes
    data:   Any


@dataclass(frozen=True)
class Failure:
    kind:    FailureKind
    message: str
    status:  Optional[int]   = None
    body:    Optional[bytes] = None


FetchOutcome = Union[Success, Failure]


async def fetch(spec: UpstreamRequestSpec, client: Optional[httpx.AsyncClient] = None) -> FetchOutcome:
    client = client or upstream_client()
    try:
        # httpx timeouts are per phase; wait_for caps the whole call, body included
        resp = await asyncio.wait_for(
            client.request(spec.method, spec.url, headers=dict(spec.headers), timeout=spec.timeout_s),
            spec.timeout_s,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as ex:
        return Failure(FailureKind.TIMEOUT, f"Upstream timed out after {spec.timeout_s}s ({type(ex).__name__})")
    except httpx.HTTPError as ex:
        return Failure(FailureKind.NETWORK, str(ex) or type(ex).__name__)

    body = resp.content
    if not resp.is_success:
        return Failure(
            FailureKind.HTTP,
            f"HTTP error! Status: {resp.status_code}",
            status=resp.status_code,
            body=body,
        )

    try:
        data = json.loads(body)
    except ValueError as ex:
        log.warning(f"Invalid JSON from {spec.path}: {ex}")
        return Failure(FailureKind.INVALID_JSON, f"Invalid JSON from upstream: {ex}", status=resp.status_code, body=body)

    return Success(status=resp.status_code, body=body, data=data)
