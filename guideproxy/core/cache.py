"""
guideproxy/core/cache.py
═══════════════════════════════════════════════════════════════════════════
In-memory TTL cache for upstream feed bodies.
  • One TTLCache per FeedProxy, created at start-up, dropped at shutdown
  • Values are raw response bytes, stored only after a valid JSON fetch
  • Expiry is checked lazily on get() → no background sweeper
  • Accessed from the event loop only, so no lock is needed
═══════════════════════════════════════════════════════════════════════════
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class CacheEntry:
    key:        str
    value:      bytes
    stored_at:  float
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class TTLCache:
    def __init__(self, ttl_s: float, clock: Callable[[], float] = time.time):
        self.ttl_s   = ttl_s
        self._clock  = clock
        self._store: dict[str, CacheEntry] = {}
        self.hits    = 0
        self.misses  = 0

    def get(self, key: str) -> Optional[bytes]:
        """Stored bytes for key, or None if absent or expired."""
        entry = self._store.get(key)
        if entry is None:
            self.misses += 1
            return None
        if not entry.is_valid(self._clock()):
            del self._store[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: bytes) -> CacheEntry:
        now   = self._clock()
        entry = CacheEntry(key=key, value=value, stored_at=now, expires_at=now + self.ttl_s)
        self._store[key] = entry
        return entry

    def clear(self) -> int:
        """Drop every entry regardless of TTL. Returns how many were dropped."""
        n = len(self._store)
        self._store.clear()
        return n

    def __len__(self) -> int:
        return len(self._store)

    def summary(self) -> dict:
        """Metadata only — safe to expose over HTTP."""
        now = self._clock()
        return {
            k: {
                "age_s":     round(now - e.stored_at, 1),
                "expires_s": round(e.expires_at - now, 1),
                "bytes":     len(e.value),
                "valid":     e.is_valid(now),
            }
            for k, e in self._store.items()
        }

    def stats(self) -> dict:
        return {
            "hits":    self.hits,
            "misses":  self.misses,
            "entries": len(self._store),
            "ttl_s":   self.ttl_s,
            "keys":    self.summary(),
        }
