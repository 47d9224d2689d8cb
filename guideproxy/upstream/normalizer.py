"""
guideproxy/upstream/normalizer.py
═══════════════════════════════════════════════════════════════════════════════
Turns whatever the feed returned into a list of records.

Resolution order (first match wins):
  1. bare list                              → as-is, [] included
  2. {<endpoint or alias>: [...]}           → that list
  3. any list-valued properties             → the longest (first on ties)
  4. non-empty object with no lists         → [object]
  5. anything else                          → ShapeError

Rule 3 is a heuristic for payloads nested under an unexpected key; the
explicit key lookup in rule 2 always takes precedence.
═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Any

from guideproxy.core.config import endpoint_aliases, endpoint_name
from guideproxy.core.errors import ShapeError

log = logging.getLogger("normalizer")


def normalize(endpoint: str, raw: Any) -> list:
    name = endpoint_name(endpoint)

    if isinstance(raw, list):
        return raw

    if not isinstance(raw, dict):
        raise ShapeError(f"Unexpected data structure from {name} feed: {type(raw).__name__}")

    for key in [name, *endpoint_aliases(name)]:
        value = raw.get(key)
        if isinstance(value, list):
            log.debug(f"{name}: found '{key}' property with {len(value)} items")
            return value

    longest = None
    for key, value in raw.items():
        if isinstance(value, list) and (longest is None or len(value) > len(longest[1])):
            longest = (key, value)
    if longest is not None:
        log.info(f"{name}: using largest array '{longest[0]}' ({len(longest[1])} items)")
        return longest[1]

    if raw:
        log.info(f"{name}: no arrays in payload, wrapping object as single record")
        return [raw]

    raise ShapeError(f"Unexpected data structure from {name} feed: empty object")
