"""
guideproxy/main.py  — TV Guide Feed Proxy
Startup: builds the FeedProxy (cache + request specs) and parks it on app.state.
Shutdown: drops the cache and closes the shared upstream client.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from guideproxy.core.cache import TTLCache
from guideproxy.core.config import (
    CACHE_TTL_S, ENDPOINTS, PORT, UPSTREAM_HOST, UPSTREAM_PREFIX,
    UPSTREAM_RETRIES, UPSTREAM_RETRY_DELAY_S, UPSTREAM_RETRY_JITTER,
    build_specs,
)
from guideproxy.core.http_client import close_all
from guideproxy.core.proxy import FeedProxy
from guideproxy.routers import feeds, records

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("main")

VERSION = "1.0.0"


def build_proxy() -> FeedProxy:
    return FeedProxy(
        build_specs(),
        TTLCache(CACHE_TTL_S),
        retries=UPSTREAM_RETRIES,
        initial_delay_s=UPSTREAM_RETRY_DELAY_S,
        jitter=UPSTREAM_RETRY_JITTER,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"TV Guide Feed Proxy v{VERSION} starting — upstream {UPSTREAM_HOST}{UPSTREAM_PREFIX}")
    app.state.proxy = build_proxy()
    yield
    log.info("Shutting down...")
    app.state.proxy.clear()
    await close_all()


app = FastAPI(
    title="TV Guide Feed Proxy",
    description=(
        "CORS-enabled, cache-first proxy for the fubo metadata feeds "
        "(matches, movies, series). Upstream bodies are cached for "
        f"{int(CACHE_TTL_S)}s; failed fetches are retried with exponential backoff."
    ),
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Cache"],
)


@app.middleware("http")
async def always_allow_origin(request: Request, call_next):
    # CORSMiddleware only answers requests that carry an Origin header
    response = await call_next(request)
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    return response


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(records.router)
app.include_router(feeds.router)


@app.get("/", tags=["meta"])
async def root():
    return {
        "status":  "online",
        "version": VERSION,
        "upstream": f"{UPSTREAM_HOST}{UPSTREAM_PREFIX}",
        "endpoints": {
            **{f"{name}_raw": f"/{name}.json" for name in ENDPOINTS},
            "matches":     "/api/matches?sport=&league=&start_date=",
            "movies":      "/api/movies?genre=&release_year=",
            "series":      "/api/series?genre=",
            "clear_cache": "/clear-cache",
            "cache_stats": "/cache-stats",
            "health":      "/health",
            "docs":        "/docs",
        },
    }


@app.get("/health", tags=["meta"])
async def health():
    """Liveness only — never touches the cache or upstream."""
    return FeedProxy.health()


def run() -> None:
    import uvicorn
    uvicorn.run("guideproxy.main:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    run()
