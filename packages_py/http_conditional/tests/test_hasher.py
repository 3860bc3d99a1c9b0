"""Tests for body and file-metadata hashing."""
import hashlib

import pytest

from http_conditional import (
    ContentHasher,
    FileStat,
    HasherFinalizedError,
    hash_file_stat,
)


class TestContentHasher:
    def test_digest_is_md5_hex_by_default(self):
        hasher = ContentHasher()
        hasher.update(b"hello world")
        assert hasher.finalize() == hashlib.md5(b"hello world").hexdigest()

    def test_chunked_updates_equal_single_update(self):
        chunked = ContentHasher()
        for chunk in (b"hel", b"lo ", b"world"):
            chunked.update(chunk)

        whole = ContentHasher()
        whole.update(b"hello world")

        assert chunked.finalize() == whole.finalize()

    def test_str_chunks_are_utf8_encoded(self):
        text = ContentHasher()
        text.update("café")
        raw = ContentHasher()
        raw.update("café".encode("utf-8"))
        assert text.finalize() == raw.finalize()

    def test_counts_bytes(self):
        hasher = ContentHasher()
        hasher.update(b"abc")
        hasher.update("de")
        assert hasher.bytes_hashed == 5

    def test_finalize_is_stable(self):
        hasher = ContentHasher()
        hasher.update(b"abc")
        first = hasher.finalize()
        assert hasher.finalize() == first
        assert hasher.is_finalized is True

    def test_update_after_finalize_raises(self):
        hasher = ContentHasher()
        hasher.finalize()
        with pytest.raises(HasherFinalizedError):
            hasher.update(b"late")

    def test_other_algorithm(self):
        hasher = ContentHasher("sha256")
        hasher.update(b"abc")
        assert hasher.algorithm == "sha256"
        assert hasher.finalize() == hashlib.sha256(b"abc").hexdigest()

    def test_unknown_algorithm_raises(self):
        with pytest.raises(ValueError):
            ContentHasher("not-a-hash")

    @pytest.mark.parametrize("algorithm", ["shake_128", "shake_256"])
    def test_variable_length_algorithm_raises(self, algorithm):
        with pytest.raises(ValueError):
            ContentHasher(algorithm)


class TestHashFileStat:
    def test_same_metadata_same_digest(self):
        stat = FileStat(size=10, modified_at=1000.5, inode=7)
        assert hash_file_stat(stat) == hash_file_stat(FileStat(size=10, modified_at=1000.5, inode=7))

    def test_modification_time_changes_digest(self):
        before = FileStat(size=10, modified_at=1000.0)
        after = FileStat(size=10, modified_at=1001.0)
        assert hash_file_stat(before) != hash_file_stat(after)

    def test_size_changes_digest(self):
        assert hash_file_stat(FileStat(size=10, modified_at=1000.0)) != hash_file_stat(
            FileStat(size=11, modified_at=1000.0)
        )
