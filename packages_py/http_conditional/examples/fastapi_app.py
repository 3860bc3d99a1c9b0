"""
FastAPI example for http_conditional.

Serves ./text.txt through several conditional-caching strategies.

Usage:
    uvicorn fastapi_app:app --port 3000
    curl -i localhost:3000/etag
    curl -i -H 'If-None-Match: <etag from above>' localhost:3000/etag
"""
import logging
import os
import time
from pathlib import Path

from fastapi import Depends, FastAPI

from http_conditional import ResponseCacheContext, create_file_watch_cache
from http_conditional.fastapi_integration import build_response, conditional_cache_dependency

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG") else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

TEXT_FILE = Path(os.getenv("TEXT_FILE", "./text.txt"))

app = FastAPI(title="http-conditional-example")
watch_cache = create_file_watch_cache()
get_cache_context = conditional_cache_dependency(watch_cache)

STARTED_AT = time.time()
MAX_AGE_MS = 1000 * 60


def read_text() -> bytes:
    return TEXT_FILE.read_bytes()


# ============================================================
# Body hashing: the ETag is the MD5 of whatever gets written
# ============================================================


@app.get("/etag")
def auto_etag(ctx: ResponseCacheContext = Depends(get_cache_context)):
    ctx.enable_auto_negotiation()
    ctx.write(read_text())
    return build_response(ctx, media_type="text/plain")


@app.get("/etag2")
def static_etag(ctx: ResponseCacheContext = Depends(get_cache_context)):
    if ctx.declare_etag("hello_world"):
        return build_response(ctx)
    ctx.write(read_text())
    return build_response(ctx, media_type="text/plain")


@app.get("/lm")
def last_modified(ctx: ResponseCacheContext = Depends(get_cache_context)):
    if ctx.declare_last_modified(TEXT_FILE.stat().st_mtime):
        return build_response(ctx)
    ctx.write(read_text())
    return build_response(ctx, media_type="text/plain")


@app.get("/maxage")
def max_age(ctx: ResponseCacheContext = Depends(get_cache_context)):
    ctx.set_max_age(1000 * 60 * 60 * 24)
    ctx.compose_cache_control()
    ctx.set_expires()
    ctx.write(read_text())
    return build_response(ctx, media_type="text/plain")


# ============================================================
# All validators at once
# ============================================================


@app.get("/all")
def everything(ctx: ResponseCacheContext = Depends(get_cache_context)):
    ctx.set_max_age(MAX_AGE_MS)
    ctx.declare_etag("this_is_totally_random")
    ctx.declare_last_modified(STARTED_AT)
    ctx.set_expires(STARTED_AT + MAX_AGE_MS / 1000)
    ctx.compose_cache_control()
    ctx.write("ABC")
    return build_response(ctx, media_type="text/plain")


# ============================================================
# Watched file: re-stat only once the max-age has passed
# ============================================================


@app.get("/changed")
def changed(ctx: ResponseCacheContext = Depends(get_cache_context)):
    path = str(TEXT_FILE)
    ctx.set_max_age(1000 * 60 * 60)
    if not ctx.is_watching(path):
        ctx.watch(path)

    if not ctx.is_changed(path):
        logger.info(f"-- {path} has not changed.")
        return build_response(ctx)

    logger.info(f"-- {path} has changed.")
    ctx.write(read_text())
    return build_response(ctx, media_type="text/plain")
