"""Tests for the in-memory request/response contexts."""
from http_conditional import BufferedResponseContext, MappingRequestContext


class TestMappingRequestContext:
    def test_case_insensitive_lookup(self):
        request = MappingRequestContext({"if-none-match": "abc"})
        assert request.get_header("If-None-Match") == "abc"

    def test_missing_header(self):
        assert MappingRequestContext().get_header("If-Modified-Since") is None


class TestBufferedResponseContext:
    def test_collects_body_and_headers(self):
        response = BufferedResponseContext()

        response.set_header("Content-Type", "text/plain")
        response.write_body(b"hello ")
        response.write_body("world")

        assert response.get_header("content-type") == "text/plain"
        assert response.body == b"hello world"
        assert response.status_code == 200

    def test_set_header_replaces_case_insensitively(self):
        response = BufferedResponseContext()

        response.set_header("etag", "a")
        response.set_header("ETag", "b")

        assert response.headers == {"ETag": "b"}

    def test_finalize_first_call_wins(self):
        response = BufferedResponseContext()

        assert response.finalize(201, b"first") is True
        assert response.finalize(500, b"second") is False

        assert response.status_code == 201
        assert response.body == b"first"
        assert response.finalized is True

    def test_mutation_after_finalize_is_ignored(self):
        response = BufferedResponseContext()
        response.finalize()

        response.set_header("ETag", "late")
        response.set_status(404)
        response.write_body(b"late")

        assert response.headers == {}
        assert response.status_code == 200
        assert response.body == b""
