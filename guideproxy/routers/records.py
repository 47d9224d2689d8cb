"""
guideproxy/routers/records.py
Endpoints:
  GET /api/matches                        → normalized + processed matches
  GET /api/matches?sport=&league=         → case-insensitive exact filters
  GET /api/matches?start_date=2025-01-01  → kickoff on/after (naive = GUIDE_TZ)
  GET /api/movies?genre=&release_year=    → processed movies
  GET /api/series?genre=                  → processed series

Same cache as the .json pass-through routes; X-Cache is forwarded.
Upstream failures come back as the pass-through error body and status.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from guideproxy.core.proxy import FeedProxy, ProxyResponse, get_proxy
from guideproxy.upstream.records import (
    filter_matches, filter_movies, filter_series,
    process_matches, process_movies, process_series,
)

router = APIRouter(prefix="/api", tags=["records"])


def _reply(resp: ProxyResponse, items: list[dict]) -> Response:
    if not resp.ok:
        return Response(
            content=resp.body,
            status_code=resp.status,
            media_type="application/json",
            headers=resp.headers,
        )
    return JSONResponse(items, headers={"X-Cache": resp.cache_status or "MISS"})


@router.get("/matches")
async def get_matches(
    sport:      Optional[str] = Query(None),
    league:     Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    proxy:      FeedProxy     = Depends(get_proxy),
):
    resp, raw = await proxy.records("matches.json")
    items = filter_matches(process_matches(raw), sport=sport, league=league, start_date=start_date)
    return _reply(resp, items)


@router.get("/movies")
async def get_movies(
    genre:        Optional[str] = Query(None),
    release_year: Optional[str] = Query(None),
    proxy:        FeedProxy     = Depends(get_proxy),
):
    resp, raw = await proxy.records("movies.json")
    return _reply(resp, filter_movies(process_movies(raw), genre=genre, release_year=release_year))


@router.get("/series")
async def get_series(
    genre: Optional[str] = Query(None),
    proxy: FeedProxy     = Depends(get_proxy),
):
    resp, raw = await proxy.records("series.json")
    return _reply(resp, filter_series(process_series(raw), genre=genre))
