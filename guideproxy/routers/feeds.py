"""
guideproxy/routers/feeds.py
Endpoints:
  GET /matches.json   → cached pass-through of upstream /Test/matches.json
  GET /movies.json    → cached pass-through of upstream /Test/movies.json
  GET /series.json    → cached pass-through of upstream /Test/series.json
  GET /clear-cache    → drop every cache entry
  GET /cache-stats    → hit / miss counters and per-key ages

Bodies are served byte-for-byte as upstream sent them. X-Cache: HIT|MISS.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from guideproxy.core.proxy import FeedProxy, get_proxy

router = APIRouter(tags=["feeds"])


@router.get("/clear-cache")
async def clear_cache(proxy: FeedProxy = Depends(get_proxy)):
    cleared = proxy.clear()
    return {"message": f"Cache cleared ({cleared} entries)", "cleared": cleared}


@router.get("/cache-stats")
async def cache_stats(proxy: FeedProxy = Depends(get_proxy)):
    return proxy.stats()


@router.get("/{endpoint}.json")
async def get_feed(endpoint: str, proxy: FeedProxy = Depends(get_proxy)):
    result = await proxy.get(f"{endpoint}.json")
    headers = dict(result.headers)
    if result.cache_status:
        headers["X-Cache"] = result.cache_status
    return Response(
        content=result.body,
        status_code=result.status,
        media_type="application/json",
        headers=headers,
    )
