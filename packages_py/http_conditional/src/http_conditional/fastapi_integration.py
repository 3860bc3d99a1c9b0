"""
FastAPI / Starlette integration.

Example:
    watch_cache = create_file_watch_cache()
    get_cache_context = conditional_cache_dependency(watch_cache)

    @app.get("/report")
    def report(ctx: ResponseCacheContext = Depends(get_cache_context)):
        if ctx.declare_etag(current_report_version()):
            return build_response(ctx)
        ctx.write(render_report())
        return build_response(ctx, media_type="text/plain")
"""
import logging
from typing import Callable, Optional

from starlette.requests import Request
from starlette.responses import Response

from .context import BufferedResponseContext
from .negotiation import ResponseCacheContext
from .types import RequestContext
from .watch import FileWatchCache

logger = logging.getLogger(__name__)


class StarletteRequestContext(RequestContext):
    """RequestContext over a Starlette request."""

    def __init__(self, request: Request) -> None:
        self._request = request

    def get_header(self, name: str) -> Optional[str]:
        return self._request.headers.get(name)


def conditional_cache_dependency(
    watch_cache: Optional[FileWatchCache] = None,
    max_age_ms: Optional[int] = None,
) -> Callable[[Request], ResponseCacheContext]:
    """Build a FastAPI dependency yielding a fresh ResponseCacheContext per request."""

    def dependency(request: Request) -> ResponseCacheContext:
        return ResponseCacheContext(
            StarletteRequestContext(request),
            BufferedResponseContext(),
            watch_cache=watch_cache,
            max_age_ms=max_age_ms,
        )

    return dependency


def build_response(
    context: ResponseCacheContext,
    media_type: Optional[str] = None,
) -> Response:
    """Finalize the context if needed and convert it to a Starlette Response."""
    buffered = context.inner
    if not isinstance(buffered, BufferedResponseContext):
        raise TypeError("build_response requires a BufferedResponseContext")

    if not context.finalized:
        context.end()

    logger.debug(f"build_response: status={buffered.status_code}")
    return Response(
        content=buffered.body,
        status_code=buffered.status_code,
        headers=buffered.headers,
        media_type=media_type,
    )
