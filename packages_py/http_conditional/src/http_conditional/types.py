"""
Types for HTTP conditional-request validation and file watching.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union


@dataclass
class Validator:
    """Validator state for a single in-flight response."""

    etag: Optional[str] = None
    """Declared or computed ETag."""

    last_modified: Optional[float] = None
    """Declared Last-Modified (Unix timestamp, whole seconds)."""

    auto_negotiation_enabled: bool = False
    """Whether finalize-time negotiation is active."""

    auto_hash_enabled: bool = False
    """Whether written body chunks are hashed into an ETag."""

    finalized: bool = False
    """Body or 304 already written; headers are frozen."""


@dataclass
class CacheControlConfig:
    """Per-request Cache-Control configuration."""

    max_age_ms: int = 0
    """Configured max-age in milliseconds."""


@dataclass(frozen=True)
class FileStat:
    """Filesystem metadata used to fingerprint a file."""

    size: int
    modified_at: float
    inode: int = 0


@dataclass(frozen=True)
class WatchedFileEntry:
    """Cached descriptor for a watched file. Replaced, never mutated."""

    path: str
    """Watched path (cache key)."""

    created_at: float
    """When the entry was (re)built (Unix timestamp)."""

    modified_at: float
    """File modification time at (re)build (Unix timestamp)."""

    expires_at: float
    """modified_at + max_age_ms."""

    etag: str
    """Digest of the file's stat metadata."""

    max_age_ms: int
    """Max-age the expiry was derived from."""

    aux_data: Any = None
    """Opaque caller data, carried across refreshes."""


@dataclass(frozen=True)
class NotFound:
    """Sentinel returned by watch() when a path cannot be stat'ed."""

    path: str
    reason: str = "not found"

    def __bool__(self) -> bool:
        return False


WatchResult = Union[WatchedFileEntry, NotFound]


@dataclass
class FileWatchConfig:
    """Configuration for the file watch cache."""

    default_max_age_ms: Optional[int] = None
    """Max-age used when watch() is not given one. Default: 0."""

    hash_algorithm: Optional[str] = None
    """hashlib algorithm for digests. Default: 'md5'."""

    not_modified_body: Optional[str] = None
    """Body written with a 304 response. Default: 'Cached'."""

    clock: Optional[Callable[[], float]] = None
    """Wall clock returning Unix seconds. Default: time.time."""


@dataclass
class FileWatchStats:
    """File watch cache statistics."""

    entries: int
    stat_calls: int
    refreshes: int


class FileWatchEventType(str, Enum):
    """Event types for file watch operations."""

    WATCH = "watch:add"
    UNWATCH = "watch:remove"
    REFRESH = "watch:refresh"
    MISSING = "watch:missing"


@dataclass
class FileWatchEvent:
    """File watch event."""

    type: FileWatchEventType
    path: str
    timestamp: float
    metadata: Dict[str, Any] = field(default_factory=dict)


FileWatchEventListener = Callable[[FileWatchEvent], None]
"""Event listener type."""


class RequestContext(ABC):
    """Read access to the inbound request headers."""

    @abstractmethod
    def get_header(self, name: str) -> Optional[str]:
        """Get a request header value (case-insensitive)."""
        pass


class ResponseContext(ABC):
    """Write access to the outgoing response."""

    @abstractmethod
    def get_header(self, name: str) -> Optional[str]:
        """Get a response header value (case-insensitive)."""
        pass

    @abstractmethod
    def set_header(self, name: str, value: str) -> None:
        """Set a response header, replacing any previous value."""
        pass

    @abstractmethod
    def set_status(self, status_code: int) -> None:
        """Set the response status code."""
        pass

    @abstractmethod
    def write_body(self, chunk: Union[bytes, str]) -> None:
        """Write a chunk of the response body."""
        pass

    @abstractmethod
    def finalize(
        self,
        status_code: Optional[int] = None,
        body: Optional[Union[bytes, str]] = None,
    ) -> bool:
        """Finish the response. Only the first call has an effect."""
        pass

    @property
    @abstractmethod
    def finalized(self) -> bool:
        """Whether finalize() has already been called."""
        pass


class FileSystem(ABC):
    """Minimal filesystem access needed by the watch cache."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a path exists."""
        pass

    @abstractmethod
    def stat(self, path: str) -> FileStat:
        """Stat a path. Raises OSError on failure."""
        pass
