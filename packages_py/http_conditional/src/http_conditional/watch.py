"""
Process-wide cache of watched files.

Each entry fingerprints a file by its stat metadata and expires at
``modified_at + max_age``. Expired entries are re-stat'ed on the next lookup.
"""
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .config import get_settings
from .hasher import DEFAULT_HASH_ALGORITHM, ContentHasher, hash_file_stat
from .types import (
    FileStat,
    FileSystem,
    FileWatchConfig,
    FileWatchEvent,
    FileWatchEventListener,
    FileWatchEventType,
    FileWatchStats,
    NotFound,
    WatchedFileEntry,
    WatchResult,
)

logger = logging.getLogger(__name__)


DEFAULT_FILE_WATCH_CONFIG = FileWatchConfig(
    default_max_age_ms=0,
    hash_algorithm=DEFAULT_HASH_ALGORITHM,
    not_modified_body="Cached",
    clock=time.time,
)


def merge_file_watch_config(config: Optional[FileWatchConfig] = None) -> FileWatchConfig:
    """Merge user config with defaults."""
    if config is None:
        config = FileWatchConfig()

    return FileWatchConfig(
        default_max_age_ms=config.default_max_age_ms
        if config.default_max_age_ms is not None
        else DEFAULT_FILE_WATCH_CONFIG.default_max_age_ms,
        hash_algorithm=config.hash_algorithm or DEFAULT_FILE_WATCH_CONFIG.hash_algorithm,
        not_modified_body=config.not_modified_body
        if config.not_modified_body is not None
        else DEFAULT_FILE_WATCH_CONFIG.not_modified_body,
        clock=config.clock or DEFAULT_FILE_WATCH_CONFIG.clock,
    )


class LocalFileSystem(FileSystem):
    """FileSystem backed by os.stat."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def stat(self, path: str) -> FileStat:
        st = os.stat(path)
        return FileStat(size=st.st_size, modified_at=st.st_mtime, inode=st.st_ino)


_PendingEvent = Tuple[FileWatchEventType, str, Dict[str, Any]]


class FileWatchCache:
    """
    Mapping from path to WatchedFileEntry, shared by all requests.

    Lookup, expiry check and replacement run under one lock so concurrent
    requests never re-stat the same expired entry twice or observe a
    half-replaced entry. Listeners are called after the lock is released.

    Example:
        cache = FileWatchCache(FileWatchConfig(default_max_age_ms=60_000))
        cache.watch("/srv/assets/app.js")

        entry = cache.resolve("/srv/assets/app.js")
        if entry is None:
            ...  # not watched or vanished: treat as changed
    """

    def __init__(
        self,
        config: Optional[FileWatchConfig] = None,
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self._config = merge_file_watch_config(config)
        # Fail fast on an unknown algorithm
        ContentHasher(self._config.hash_algorithm)
        self._fs = filesystem or LocalFileSystem()
        self._clock: Callable[[], float] = self._config.clock
        self._entries: Dict[str, WatchedFileEntry] = {}
        self._lock = threading.Lock()
        self._listeners: Set[FileWatchEventListener] = set()
        self._stat_calls = 0
        self._refreshes = 0

    def now(self) -> float:
        """Current wall-clock time from the configured clock."""
        return self._clock()

    def watch(
        self,
        path: str,
        max_age_ms: Optional[int] = None,
        aux_data: Any = None,
    ) -> WatchResult:
        """
        Stat path and insert (or replace) its entry.

        Returns a falsy NotFound instead of raising when the path is missing
        or cannot be stat'ed.
        """
        with self._lock:
            result, event = self._watch_unlocked(path, max_age_ms, aux_data)
        self._emit(*event)
        return result

    def is_watching(self, path: str) -> bool:
        """Check if path has an entry."""
        with self._lock:
            return path in self._entries

    def unwatch(self, path: str) -> bool:
        """Remove the entry for path. Returns whether one existed."""
        with self._lock:
            removed = self._entries.pop(path, None)
        if removed is None:
            return False
        logger.debug(f"FileWatchCache.unwatch: removed {path}")
        self._emit(FileWatchEventType.UNWATCH, path, {})
        return True

    def get_entry(self, path: str) -> Optional[WatchedFileEntry]:
        """Get the current entry without expiry checks."""
        with self._lock:
            return self._entries.get(path)

    def resolve(self, path: str, force: bool = False) -> Optional[WatchedFileEntry]:
        """
        Return a usable entry for path, refreshing it first when forced or
        expired. None means the path is not watched (or vanished on refresh)
        and must be treated as changed.

        At most one re-stat happens per call, even when the refreshed entry
        is itself already expired (max-age 0).
        """
        with self._lock:
            entry = self._entries.get(path)
            if entry is None:
                logger.debug(f"FileWatchCache.resolve: {path} is not watched")
                return None

            if not force and self._clock() <= entry.expires_at:
                return entry

            logger.debug(
                f"FileWatchCache.resolve: refreshing {path} "
                f"(force={force}, expires_at={entry.expires_at})"
            )
            del self._entries[path]
            self._refreshes += 1
            result, event = self._watch_unlocked(path, entry.max_age_ms, entry.aux_data)

        self._emit(*event)
        if not result:
            return None
        self._emit(
            FileWatchEventType.REFRESH,
            path,
            {"previous_expires_at": entry.expires_at, "expires_at": result.expires_at},
        )
        return result

    def paths(self) -> List[str]:
        """Get all watched paths."""
        with self._lock:
            return list(self._entries.keys())

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> FileWatchStats:
        """Get cache statistics."""
        with self._lock:
            return FileWatchStats(
                entries=len(self._entries),
                stat_calls=self._stat_calls,
                refreshes=self._refreshes,
            )

    def get_config(self) -> FileWatchConfig:
        """Get configuration."""
        return self._config

    def on(self, listener: FileWatchEventListener) -> Callable[[], None]:
        """Add event listener."""
        with self._lock:
            self._listeners.add(listener)
        return lambda: self.off(listener)

    def off(self, listener: FileWatchEventListener) -> None:
        """Remove event listener."""
        with self._lock:
            self._listeners.discard(listener)

    def _watch_unlocked(
        self,
        path: str,
        max_age_ms: Optional[int],
        aux_data: Any,
    ) -> Tuple[WatchResult, _PendingEvent]:
        if max_age_ms is None:
            max_age_ms = self._config.default_max_age_ms

        if not self._fs.exists(path):
            logger.warning(f"FileWatchCache.watch: {path} does not exist")
            self._entries.pop(path, None)
            return NotFound(path=path), (FileWatchEventType.MISSING, path, {"reason": "not found"})

        try:
            self._stat_calls += 1
            stat = self._fs.stat(path)
        except OSError as e:
            logger.warning(f"FileWatchCache.watch: stat failed for {path}: {e}")
            self._entries.pop(path, None)
            return NotFound(path=path, reason=str(e)), (
                FileWatchEventType.MISSING,
                path,
                {"reason": str(e)},
            )

        entry = WatchedFileEntry(
            path=path,
            created_at=self._clock(),
            modified_at=stat.modified_at,
            expires_at=stat.modified_at + max_age_ms / 1000.0,
            etag=hash_file_stat(stat, self._config.hash_algorithm),
            max_age_ms=max_age_ms,
            aux_data=aux_data,
        )
        self._entries[path] = entry
        logger.debug(
            f"FileWatchCache.watch: cached {path} "
            f"(etag={entry.etag}, expires_at={entry.expires_at})"
        )
        return entry, (FileWatchEventType.WATCH, path, {"etag": entry.etag})

    def _emit(
        self,
        event_type: FileWatchEventType,
        path: str,
        metadata: Dict[str, Any],
    ) -> None:
        """Emit an event to all listeners."""
        event = FileWatchEvent(
            type=event_type,
            path=path,
            timestamp=self._clock(),
            metadata=metadata,
        )
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"FileWatchCache._emit: listener failed for {event_type.value}: {e}")


def create_file_watch_cache(
    config: Optional[FileWatchConfig] = None,
    filesystem: Optional[FileSystem] = None,
) -> FileWatchCache:
    """
    Create a file watch cache. Without an explicit config the defaults come
    from the HTTP_CONDITIONAL_* environment settings.
    """
    if config is None:
        config = get_settings().to_file_watch_config()
    return FileWatchCache(config, filesystem)


_default_watch_cache: Optional[FileWatchCache] = None
_default_watch_cache_lock = threading.Lock()


def get_default_watch_cache() -> FileWatchCache:
    """Process-wide watch cache used when none is injected."""
    global _default_watch_cache
    with _default_watch_cache_lock:
        if _default_watch_cache is None:
            _default_watch_cache = create_file_watch_cache()
        return _default_watch_cache
