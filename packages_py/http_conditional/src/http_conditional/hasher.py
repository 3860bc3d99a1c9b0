"""
Digest computation for ETags.

Body digests are built incrementally from written chunks. File digests are
built from stat metadata so large files never have to be read.
"""
import hashlib
import json
from dataclasses import asdict
from typing import Optional, Union

from .types import FileStat

DEFAULT_HASH_ALGORITHM = "md5"


class HasherFinalizedError(Exception):
    """Raised when data is fed to a hasher that was already finalized."""

    code = "HASHER_FINALIZED"

    def __init__(self, message: str = "update() called after finalize()") -> None:
        super().__init__(message)
        self.name = "HasherFinalizedError"


def _new_hash(algorithm: str):
    try:
        h = hashlib.new(algorithm)
    except ValueError:
        raise ValueError(f"Unsupported hash algorithm: {algorithm!r}") from None
    # Variable-length digests (shake_*) cannot produce a plain hexdigest()
    if h.digest_size == 0:
        raise ValueError(f"Unsupported hash algorithm: {algorithm!r} has no fixed digest size")
    return h


class ContentHasher:
    """
    Incremental body hasher, one per response stream.

    Example:
        hasher = ContentHasher()
        hasher.update(b"hello ")
        hasher.update("world")
        etag = hasher.finalize()
    """

    def __init__(self, algorithm: str = DEFAULT_HASH_ALGORITHM) -> None:
        self._hash = _new_hash(algorithm)
        self._algorithm = algorithm
        self._digest: Optional[str] = None
        self._bytes_hashed = 0

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def bytes_hashed(self) -> int:
        """Number of bytes folded into the digest so far."""
        return self._bytes_hashed

    @property
    def is_finalized(self) -> bool:
        return self._digest is not None

    def update(self, chunk: Union[bytes, str]) -> None:
        """Fold a body chunk into the running digest."""
        if self._digest is not None:
            raise HasherFinalizedError()
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._hash.update(chunk)
        self._bytes_hashed += len(chunk)

    def finalize(self) -> str:
        """Close the computation and return the hex digest."""
        if self._digest is None:
            self._digest = self._hash.hexdigest()
        return self._digest


def hash_file_stat(stat: FileStat, algorithm: str = DEFAULT_HASH_ALGORITHM) -> str:
    """Hex digest over a file's serialized stat metadata."""
    hasher = ContentHasher(algorithm)
    hasher.update(json.dumps(asdict(stat), sort_keys=True))
    return hasher.finalize()
