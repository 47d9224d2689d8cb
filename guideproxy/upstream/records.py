"""
guideproxy/upstream/records.py
═══════════════════════════════════════════════════════════════════════════════
Known-optional-field accessors for normalized feed records.

The feed has no fixed schema, so every field is read defensively with the
fallback names it has been seen under (starttime / startTime, tmsId / id,
genres as list or string, …).  Output dicts always carry every key.
═══════════════════════════════════════════════════════════════════════════════
"""

from datetime import datetime, timezone
from typing import Any, Optional

from guideproxy.core.config import GUIDE_TZ


# ── Helpers ───────────────────────────────────────────────────────────────────

def _first(rec: dict, *keys: str, default: Any = "") -> Any:
    """First truthy value among keys, else default."""
    for k in keys:
        v = rec.get(k)
        if v:
            return v
    return default


def _text(value: Any) -> str:
    """
    Best-effort display string for a field that should be text.
    {"name": ...} objects give their name, numbers are stringified,
    anything else becomes "".
    """
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        name = value.get("name")
        return name if isinstance(name, str) else ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _joined(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(t for t in (_text(v) for v in value) if t)
    return _text(value)


def _head(value: Any, default: str) -> str:
    if isinstance(value, list):
        return (_text(value[0]) if value else "") or default
    return _text(value) or default


def _same(value: Any, wanted: str) -> bool:
    return isinstance(value, str) and value.lower() == wanted.lower()


def _contains(value: Any, wanted: str) -> bool:
    return isinstance(value, str) and wanted.lower() in value.lower()


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def parse_time(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-ish timestamp into an aware datetime.
    Naive values are read in GUIDE_TZ.  Returns None when unparseable.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = GUIDE_TZ.localize(dt)
    return dt


# ── Matches ───────────────────────────────────────────────────────────────────

def process_match(m: dict) -> dict:
    start = _first(m, "starttime", "startTime")
    end   = _first(m, "endtime", "endTime")
    return {
        "id":                   m.get("id") or "",
        "title":                m.get("title") or "",
        "hometeam":             m.get("hometeam") or "",
        "awayteam":             m.get("awayteam") or "",
        "hometeamID":           m.get("hometeamID") or "",
        "awayteamID":           m.get("awayteamID") or "",
        "starttime":            start,
        "endtime":              end,
        "sport":                _text(m.get("sport")),
        "league":               _text(m.get("league")),
        "league_id":            m.get("league_id") or "",
        "network":              m.get("network") or "",
        "networkUrl":           m.get("networkUrl") or "",
        "matchId":              m.get("matchId") or "",
        "matchUrl":             m.get("matchUrl") or "",
        "thumbnail":            m.get("thumbnail") or "",
        "country":              m.get("country") or "US",
        "url":                  m.get("url") or "",
        "regionalRestrictions": bool(_first(m, "regionalRestrictions", "isRegional", default=False)),
        "startTime":            start,
        "endTime":              end,
        "source":               "fubo_api",
    }


def process_matches(records: list) -> list[dict]:
    return [process_match(r) for r in records if isinstance(r, dict)]


def filter_matches(
    matches: list[dict],
    sport: Optional[str] = None,
    league: Optional[str] = None,
    start_date: Optional[str] = None,
) -> list[dict]:
    out = matches
    if sport:
        out = [m for m in out if _same(m["sport"], sport)]
    if league:
        out = [m for m in out if _same(m["league"], league)]
    if start_date:
        since = parse_time(start_date)
        if since is not None:
            kept = []
            for m in out:
                dt = parse_time(m["starttime"])
                if dt is not None and dt >= since:
                    kept.append(m)
            out = kept
    return out


# ── Movies ────────────────────────────────────────────────────────────────────

def process_movie(m: dict) -> dict:
    seconds = m.get("durationSeconds")
    duration = m.get("duration") or (int(seconds) // 60 if isinstance(seconds, (int, float)) else "")
    actors = m.get("actors")
    return {
        "id":          _first(m, "tmsId", "id"),
        "title":       m.get("title") or "",
        "description": _first(m, "shortDescription", "longDescription"),
        "releaseYear": m.get("releaseYear") or "",
        "duration":    duration,
        "genre":       _joined(m.get("genres")),
        "rating":      m.get("rating") or "",
        "director":    _joined(m.get("directors")),
        "actors":      actors if isinstance(actors, list) else [],
        "thumbnail":   m.get("poster") or "",
        "url":         _first(m, "url", "deepLink"),
        "network":     m.get("network") or "",
        "starttime":   m.get("licenseWindowStart") or _now_iso(),
        "sport":       "Movie",
        "league":      _head(m.get("genres"), "Movie"),
        "source":      "fubo_movies",
    }


def process_movies(records: list) -> list[dict]:
    return [process_movie(r) for r in records if isinstance(r, dict)]


def filter_movies(
    movies: list[dict],
    genre: Optional[str] = None,
    release_year: Optional[str] = None,
) -> list[dict]:
    out = movies
    if genre:
        out = [m for m in out if _contains(m["genre"], genre)]
    if release_year:
        out = [m for m in out if m["releaseYear"] and str(m["releaseYear"]) == str(release_year)]
    return out


# ── Series ────────────────────────────────────────────────────────────────────

def process_show(s: dict) -> dict:
    genres = s.get("genres")
    creators = s.get("creators")
    actors = s.get("actors")
    return {
        "id":          _first(s, "id", "tmsId"),
        "title":       _first(s, "title", "name"),
        "description": _first(s, "description", "shortDescription", "longDescription"),
        "seasons":     _first(s, "seasons", "seasonCount"),
        "episodes":    _first(s, "episodes", "episodeCount"),
        "genre":       _joined(genres) if isinstance(genres, list) else _text(_first(s, "genre", "genres")),
        "rating":      _first(s, "rating", "contentRating"),
        "creator":     _joined(creators) if isinstance(creators, list) else _first(s, "creator", "creators"),
        "actors":      actors if isinstance(actors, list) else (s.get("cast") or []),
        "thumbnail":   _first(s, "thumbnail", "poster", "image"),
        "url":         _first(s, "url", "deepLink"),
        "network":     _first(s, "network", "channel"),
        "starttime":   _first(s, "startTime", "airDate") or _now_iso(),
        "sport":       "TV Series",
        "league":      _head(genres if isinstance(genres, list) else _first(s, "genre", "genres"), "TV Series"),
        "source":      "fubo_series",
    }


def process_series(records: list) -> list[dict]:
    return [process_show(r) for r in records if isinstance(r, dict)]


def filter_series(series: list[dict], genre: Optional[str] = None) -> list[dict]:
    if not genre:
        return series
    return [s for s in series if _contains(s["genre"], genre)]
