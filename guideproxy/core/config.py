"""
guideproxy/core/config.py  ── TV Guide Feed Proxy
═══════════════════════════════════════════════════════════════════════════════
UPSTREAM:

  metadata-feeds.fubo.tv  →  /Test/matches.json   live sports schedule
                             /Test/movies.json    movie catalogue
                             /Test/series.json    TV series catalogue

  All three are plain GET + JSON, no auth.  Response shape drifts between
  bare arrays and wrapped objects — see upstream/normalizer.py.

Everything below can be overridden with environment variables.
═══════════════════════════════════════════════════════════════════════════════
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import pytz

# ── Server ────────────────────────────────────────────────────────────────────
PORT = int(os.environ.get("PORT", "3001"))

# ── Upstream feed ─────────────────────────────────────────────────────────────
UPSTREAM_HOST   = os.environ.get("UPSTREAM_HOST", "https://metadata-feeds.fubo.tv").rstrip("/")
UPSTREAM_PREFIX = os.environ.get("UPSTREAM_PREFIX", "/Test").rstrip("/")
UPSTREAM_USER_AGENT: Optional[str] = os.environ.get("UPSTREAM_USER_AGENT") or None

UPSTREAM_TIMEOUT_S      = float(os.environ.get("UPSTREAM_TIMEOUT_S", "15"))
UPSTREAM_RETRIES        = int(os.environ.get("UPSTREAM_RETRIES", "3"))
UPSTREAM_RETRY_DELAY_S  = float(os.environ.get("UPSTREAM_RETRY_DELAY_S", "1.0"))
# Fraction of the current delay added as random jitter (0 = plain doubling)
UPSTREAM_RETRY_JITTER   = float(os.environ.get("UPSTREAM_RETRY_JITTER", "0"))

# ── Cache ─────────────────────────────────────────────────────────────────────
CACHE_TTL_S = float(os.environ.get("CACHE_TTL_S", "300"))   # 5 min

# ── Guide time zone ───────────────────────────────────────────────────────────
# Naive start_date filters on /api/matches are read in this zone.
GUIDE_TZ = pytz.timezone(os.environ.get("GUIDE_TZ", "America/New_York"))

# ── Feed registry ─────────────────────────────────────────────────────────────
# name → keys the wrapped-object form of the feed has been seen under
ENDPOINTS: dict[str, dict] = {
    "matches": {"aliases": ["matches", "events", "games"]},
    "movies":  {"aliases": ["movies", "items"]},
    "series":  {"aliases": ["series", "shows", "items"]},
}

BASE_HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class UpstreamRequestSpec:
    """One logical upstream feed. Built once per endpoint, never per call."""
    host:      str
    path:      str
    method:    str   = "GET"
    headers:   Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(BASE_HEADERS)))
    timeout_s: float = UPSTREAM_TIMEOUT_S

    @property
    def url(self) -> str:
        return f"{self.host}{self.path}"


def endpoint_name(key: str) -> str:
    """'matches.json' → 'matches'"""
    return key[:-5] if key.endswith(".json") else key


def endpoint_aliases(key: str) -> list[str]:
    name = endpoint_name(key)
    return ENDPOINTS.get(name, {}).get("aliases", [name])


def build_spec(name: str) -> UpstreamRequestSpec:
    headers = dict(BASE_HEADERS)
    if UPSTREAM_USER_AGENT:
        headers["User-Agent"] = UPSTREAM_USER_AGENT
    return UpstreamRequestSpec(
        host=UPSTREAM_HOST,
        path=f"{UPSTREAM_PREFIX}/{name}.json",
        headers=MappingProxyType(headers),
        timeout_s=UPSTREAM_TIMEOUT_S,
    )


def build_specs() -> dict[str, UpstreamRequestSpec]:
    """Cache key ('matches.json') → request spec, for every known feed."""
    return {f"{name}.json": build_spec(name) for name in ENDPOINTS}
