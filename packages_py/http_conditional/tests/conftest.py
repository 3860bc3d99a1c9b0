"""Pytest configuration and fixtures for http_conditional tests."""
from typing import Dict, Generator, Optional

import pytest

from http_conditional import (
    BufferedResponseContext,
    FileStat,
    FileSystem,
    FileWatchCache,
    FileWatchConfig,
    MappingRequestContext,
    ResponseCacheContext,
)

# Fixed "now": 2024-01-01T00:00:00Z
NOW = 1704067200.0


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryFileSystem(FileSystem):
    """In-memory FileSystem that counts stat calls."""

    def __init__(self) -> None:
        self.files: Dict[str, FileStat] = {}
        self.failing: Dict[str, OSError] = {}
        self.stat_calls = 0

    def add(self, path: str, modified_at: float, size: int = 100, inode: int = 1) -> None:
        self.files[path] = FileStat(size=size, modified_at=modified_at, inode=inode)

    def touch(self, path: str, modified_at: float, size: Optional[int] = None) -> None:
        current = self.files[path]
        self.files[path] = FileStat(
            size=current.size if size is None else size,
            modified_at=modified_at,
            inode=current.inode,
        )

    def remove(self, path: str) -> None:
        self.files.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.failing

    def stat(self, path: str) -> FileStat:
        self.stat_calls += 1
        if path in self.failing:
            raise self.failing[path]
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at NOW."""
    return FakeClock()


@pytest.fixture
def filesystem() -> MemoryFileSystem:
    """Empty in-memory filesystem."""
    return MemoryFileSystem()


@pytest.fixture
def watch_cache(clock: FakeClock, filesystem: MemoryFileSystem) -> Generator[FileWatchCache, None, None]:
    """Watch cache over the fake clock and filesystem, 60s default max-age."""
    cache = FileWatchCache(
        FileWatchConfig(default_max_age_ms=60_000, clock=clock),
        filesystem=filesystem,
    )
    yield cache
    cache.clear()


@pytest.fixture
def make_context(watch_cache: FileWatchCache):
    """Factory building a ResponseCacheContext for given request headers."""

    def _make(headers: Optional[Dict[str, str]] = None, **kwargs) -> ResponseCacheContext:
        return ResponseCacheContext(
            MappingRequestContext(headers),
            BufferedResponseContext(),
            watch_cache=watch_cache,
            **kwargs,
        )

    return _make
