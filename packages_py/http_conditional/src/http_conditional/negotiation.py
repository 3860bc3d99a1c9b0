"""
Per-request conditional negotiation.

ResponseCacheContext is built once per request around the framework's
response. Handlers declare validators on it (or let it hash the body), and
the wrapped response turns the finalize call into a 304 when the client's
copy is still current.
"""
import logging
import math
from datetime import datetime
from typing import Any, Callable, List, Optional, Union

from .hasher import ContentHasher
from .parser import (
    REVALIDATE_CACHE_CONTROL,
    build_cache_control,
    format_http_date,
    is_not_modified,
    matches_etag,
    matches_last_modified,
    parse_date_header,
    to_timestamp,
)
from .types import (
    CacheControlConfig,
    RequestContext,
    ResponseContext,
    Validator,
    WatchResult,
)
from .watch import FileWatchCache, get_default_watch_cache

logger = logging.getLogger(__name__)

NOT_MODIFIED_STATUS = 304


class AutoNegotiatingResponse(ResponseContext):
    """
    Wraps a ResponseContext and intercepts body writes and finalize.

    Written chunks are held back until finalize, which either flushes them
    or replaces them with the 304 body. While negotiation is active they are
    also hashed (when no explicit validator exists).
    """

    def __init__(self, inner: ResponseContext, context: "ResponseCacheContext") -> None:
        self._inner = inner
        self._context = context
        self._hasher: Optional[ContentHasher] = None
        self._held: List[Union[bytes, str]] = []
        self._end_called = False

    @property
    def finalized(self) -> bool:
        return self._end_called or self._inner.finalized

    def start_negotiation(self, hasher: Optional[ContentHasher]) -> None:
        if hasher is not None:
            for chunk in self._held:
                hasher.update(chunk)
        self._hasher = hasher
        self._context.validator.auto_hash_enabled = hasher is not None

    def stop_hashing(self) -> None:
        self._hasher = None
        self._context.validator.auto_hash_enabled = False

    def get_header(self, name: str) -> Optional[str]:
        return self._inner.get_header(name)

    def set_header(self, name: str, value: str) -> None:
        if self.finalized:
            logger.debug(f"AutoNegotiatingResponse.set_header: ignoring {name} after finalize")
            return
        self._inner.set_header(name, value)

    def set_status(self, status_code: int) -> None:
        if self.finalized:
            logger.debug("AutoNegotiatingResponse.set_status: ignoring status after finalize")
            return
        self._inner.set_status(status_code)

    def write_body(self, chunk: Union[bytes, str]) -> None:
        if self.finalized:
            logger.debug("AutoNegotiatingResponse.write_body: ignoring write after finalize")
            return
        if self._hasher is not None:
            self._hasher.update(chunk)
        self._held.append(chunk)

    def finalize(
        self,
        status_code: Optional[int] = None,
        body: Optional[Union[bytes, str]] = None,
    ) -> bool:
        if self._end_called:
            return self._inner.finalize(status_code, body)
        self._end_called = True

        validator = self._context.validator
        if not validator.auto_negotiation_enabled:
            validator.finalized = True
            return self._flush(status_code, body)

        if self._hasher is not None:
            if body is not None:
                self._hasher.update(body)
            if self._hasher.bytes_hashed > 0:
                validator.etag = self._hasher.finalize()
                self._inner.set_header("ETag", validator.etag)

        if self._context.is_unchanged():
            logger.debug(
                f"AutoNegotiatingResponse.finalize: not modified (etag={validator.etag}, "
                f"last_modified={validator.last_modified})"
            )
            self._held = []
            self._inner.set_header("Cache-Control", REVALIDATE_CACHE_CONTROL)
            validator.finalized = True
            return self._inner.finalize(NOT_MODIFIED_STATUS, self._context.not_modified_body)

        if self._inner.get_header("Cache-Control") is None:
            self._inner.set_header("Cache-Control", REVALIDATE_CACHE_CONTROL)
        validator.finalized = True
        return self._flush(status_code, body)

    def _flush(
        self,
        status_code: Optional[int],
        body: Optional[Union[bytes, str]],
    ) -> bool:
        for chunk in self._held:
            self._inner.write_body(chunk)
        self._held = []
        return self._inner.finalize(status_code, body)


class ResponseCacheContext:
    """
    Conditional caching operations for a single request.

    Example:
        ctx = ResponseCacheContext(request_ctx, response_ctx, watch_cache=cache)

        if ctx.declare_etag(document.version):
            ctx.end()  # client copy is current, finalize sends 304
            return
        ctx.write(document.render())
        ctx.end()
    """

    def __init__(
        self,
        request: RequestContext,
        response: ResponseContext,
        watch_cache: Optional[FileWatchCache] = None,
        max_age_ms: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._request = request
        self._inner = response
        self._watch_cache = watch_cache or get_default_watch_cache()
        config = self._watch_cache.get_config()
        self._hash_algorithm = config.hash_algorithm
        self._not_modified_body = config.not_modified_body
        self._clock = clock or self._watch_cache.now
        self._validator = Validator()
        self._cache_control = CacheControlConfig(
            max_age_ms=config.default_max_age_ms if max_age_ms is None else max_age_ms
        )
        self._response = AutoNegotiatingResponse(response, self)

    @property
    def request(self) -> RequestContext:
        return self._request

    @property
    def response(self) -> AutoNegotiatingResponse:
        """The wrapped response handlers should write through."""
        return self._response

    @property
    def inner(self) -> ResponseContext:
        """The framework response being wrapped."""
        return self._inner

    @property
    def validator(self) -> Validator:
        return self._validator

    @property
    def cache_control_config(self) -> CacheControlConfig:
        return self._cache_control

    @property
    def watch_cache(self) -> FileWatchCache:
        return self._watch_cache

    @property
    def not_modified_body(self) -> str:
        return self._not_modified_body

    @property
    def finalized(self) -> bool:
        return self._validator.finalized or self._response.finalized

    def write(self, chunk: Union[bytes, str]) -> None:
        """Write a body chunk through the negotiating response."""
        self._response.write_body(chunk)

    def end(
        self,
        body: Optional[Union[bytes, str]] = None,
        status_code: Optional[int] = None,
    ) -> bool:
        """Finalize the response, running negotiation if enabled."""
        return self._response.finalize(status_code, body)

    # -- Validators ---------------------------------------------------------

    def enable_auto_negotiation(self) -> None:
        """
        Turn on finalize-time negotiation. Idempotent.

        Hashes the written body into an ETag unless an ETag or Last-Modified
        is already known, in which case that validator is trusted.
        """
        validator = self._validator
        if validator.auto_negotiation_enabled or self.finalized:
            return

        if validator.etag is None:
            validator.etag = self._inner.get_header("ETag")
        if validator.last_modified is None:
            validator.last_modified = parse_date_header(self._inner.get_header("Last-Modified"))

        has_validator = validator.etag is not None or validator.last_modified is not None
        hasher = None if has_validator else ContentHasher(self._hash_algorithm)
        self._response.start_negotiation(hasher)
        validator.auto_negotiation_enabled = True
        logger.debug(
            f"ResponseCacheContext.enable_auto_negotiation: auto_hash={hasher is not None}"
        )

    def declare_etag(self, etag: str) -> bool:
        """
        Set the ETag and enable negotiation.

        Returns True when the request's If-None-Match already matches, so the
        handler can skip producing the body.
        """
        if self.finalized:
            logger.debug("ResponseCacheContext.declare_etag: response already finalized")
        else:
            self._validator.etag = etag
            self._inner.set_header("ETag", etag)
            self._response.stop_hashing()
            self.enable_auto_negotiation()
        return matches_etag(etag, self._request.get_header("If-None-Match"))

    def declare_last_modified(self, date: Union[datetime, float, int]) -> bool:
        """
        Set Last-Modified and enable negotiation.

        Returns True when the resource is not newer than If-Modified-Since.
        """
        # HTTP-date carries whole seconds only
        timestamp = float(math.floor(to_timestamp(date)))
        if self.finalized:
            logger.debug("ResponseCacheContext.declare_last_modified: response already finalized")
        else:
            self._validator.last_modified = timestamp
            self._inner.set_header("Last-Modified", format_http_date(timestamp))
            self._response.stop_hashing()
            self.enable_auto_negotiation()
        return matches_last_modified(timestamp, self._request.get_header("If-Modified-Since"))

    def is_unchanged(self) -> bool:
        """Finalize-time verdict for the current validators."""
        return is_not_modified(
            self._validator.etag,
            self._validator.last_modified,
            self._request.get_header("If-None-Match"),
            self._request.get_header("If-Modified-Since"),
        )

    # -- Cache-Control / Expires -------------------------------------------

    def set_max_age(self, millis: int) -> None:
        """Store the max-age used by Expires, Cache-Control and watch()."""
        if millis < 0:
            raise ValueError(f"max-age must be >= 0, got {millis}")
        self._cache_control.max_age_ms = int(millis)

    def set_expires(self, date: Union[datetime, float, int, None] = None) -> Optional[str]:
        """Write an Expires header, defaulting to now + max-age."""
        if date is None:
            date = self._clock() + self._cache_control.max_age_ms / 1000.0
        value = format_http_date(date)
        if self.finalized:
            logger.debug("ResponseCacheContext.set_expires: response already finalized")
            return None
        self._inner.set_header("Expires", value)
        return value

    def compose_cache_control(
        self,
        age: Optional[int] = None,
        keywords: Optional[List[str]] = None,
    ) -> str:
        """
        Write Cache-Control from keywords (default ["public"]) plus
        ``max-age=<age>``. age is in seconds and defaults to the stored
        max-age. The keyword list is extended in place.
        """
        if age is None:
            age = self._cache_control.max_age_ms // 1000
        value = build_cache_control(age, keywords)
        if self.finalized:
            logger.debug("ResponseCacheContext.compose_cache_control: response already finalized")
        else:
            self._inner.set_header("Cache-Control", value)
        return value

    # -- Watched files ------------------------------------------------------

    def watch(self, path: str, aux_data: Any = None) -> WatchResult:
        """Watch path using this request's max-age for the expiry."""
        return self._watch_cache.watch(
            path, max_age_ms=self._cache_control.max_age_ms, aux_data=aux_data
        )

    def is_watching(self, path: str) -> bool:
        return self._watch_cache.is_watching(path)

    def unwatch(self, path: str) -> None:
        self._watch_cache.unwatch(path)

    def is_changed(self, path: str, force: bool = False) -> bool:
        """
        Whether the client must be sent path's content again.

        Unwatched paths are always changed. Expired (or forced) entries are
        re-stat'ed once, then the entry's Last-Modified and ETag are declared
        on this response; the file is unchanged only if both match.

        The finalize-time verdict is separate and lets the ETag win: when
        only If-None-Match matches, this returns True but end() still sends
        a 304 and discards any body written meanwhile.
        """
        entry = self._watch_cache.resolve(path, force=force)
        if entry is None:
            return True

        last_modified_unchanged = self.declare_last_modified(entry.modified_at)
        etag_unchanged = self.declare_etag(entry.etag)
        return not (last_modified_unchanged and etag_unchanged)
