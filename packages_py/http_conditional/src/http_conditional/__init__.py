"""
HTTP conditional-request validation.

Computes and declares ETag / Last-Modified validators for a response,
answers If-None-Match / If-Modified-Since with 304 Not Modified, composes
Cache-Control and Expires, and tracks watched files by stat fingerprint.
"""
from .types import (
    Validator,
    CacheControlConfig,
    FileStat,
    WatchedFileEntry,
    NotFound,
    WatchResult,
    FileWatchConfig,
    FileWatchStats,
    FileWatchEventType,
    FileWatchEvent,
    FileWatchEventListener,
    RequestContext,
    ResponseContext,
    FileSystem,
)
from .hasher import (
    ContentHasher,
    HasherFinalizedError,
    hash_file_stat,
    DEFAULT_HASH_ALGORITHM,
)
from .parser import (
    get_header_value,
    to_timestamp,
    parse_date_header,
    format_http_date,
    matches_etag,
    matches_last_modified,
    is_not_modified,
    build_cache_control,
    REVALIDATE_CACHE_CONTROL,
)
from .context import (
    MappingRequestContext,
    BufferedResponseContext,
)
from .config import (
    ConditionalCacheSettings,
    get_settings,
)
from .watch import (
    FileWatchCache,
    LocalFileSystem,
    create_file_watch_cache,
    get_default_watch_cache,
    DEFAULT_FILE_WATCH_CONFIG,
    merge_file_watch_config,
)
from .negotiation import (
    AutoNegotiatingResponse,
    ResponseCacheContext,
    NOT_MODIFIED_STATUS,
)


__all__ = [
    # Types
    "Validator",
    "CacheControlConfig",
    "FileStat",
    "WatchedFileEntry",
    "NotFound",
    "WatchResult",
    "FileWatchConfig",
    "FileWatchStats",
    "FileWatchEventType",
    "FileWatchEvent",
    "FileWatchEventListener",
    "RequestContext",
    "ResponseContext",
    "FileSystem",
    # Hashing
    "ContentHasher",
    "HasherFinalizedError",
    "hash_file_stat",
    "DEFAULT_HASH_ALGORITHM",
    # Header utilities
    "get_header_value",
    "to_timestamp",
    "parse_date_header",
    "format_http_date",
    "matches_etag",
    "matches_last_modified",
    "is_not_modified",
    "build_cache_control",
    "REVALIDATE_CACHE_CONTROL",
    # Contexts
    "MappingRequestContext",
    "BufferedResponseContext",
    # Settings
    "ConditionalCacheSettings",
    "get_settings",
    # Watch cache
    "FileWatchCache",
    "LocalFileSystem",
    "create_file_watch_cache",
    "get_default_watch_cache",
    "DEFAULT_FILE_WATCH_CONFIG",
    "merge_file_watch_config",
    # Negotiation
    "AutoNegotiatingResponse",
    "ResponseCacheContext",
    "NOT_MODIFIED_STATUS",
]

__version__ = "1.0.0"
