"""Tests for header parsing and validator comparison."""
from datetime import datetime, timezone

import pytest

from http_conditional import (
    build_cache_control,
    format_http_date,
    get_header_value,
    is_not_modified,
    matches_etag,
    matches_last_modified,
    parse_date_header,
    to_timestamp,
)

from tests.conftest import NOW

NOW_HTTP_DATE = "Mon, 01 Jan 2024 00:00:00 GMT"
OVERFLOWING_HTTP_DATE = "Mon, 01 Jan 2024 99999999999999999999:00:00 GMT"


class TestGetHeaderValue:
    def test_case_insensitive(self):
        headers = {"If-None-Match": "abc"}
        assert get_header_value(headers, "if-none-match") == "abc"
        assert get_header_value(headers, "IF-NONE-MATCH") == "abc"

    def test_missing(self):
        assert get_header_value({}, "etag") is None


class TestDates:
    def test_format_http_date(self):
        assert format_http_date(NOW) == NOW_HTTP_DATE

    def test_format_accepts_datetime(self):
        dt = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert format_http_date(dt) == NOW_HTTP_DATE

    def test_naive_datetime_is_utc(self):
        assert to_timestamp(datetime(2024, 1, 1)) == NOW

    def test_parse_http_date(self):
        assert parse_date_header(NOW_HTTP_DATE) == NOW

    def test_parse_rfc850_date(self):
        assert parse_date_header("Monday, 01-Jan-24 00:00:00 GMT") == NOW

    @pytest.mark.parametrize(
        "value",
        [
            None,
            "",
            "not a date",
            "Mon, 99 Foo 2024",
            OVERFLOWING_HTTP_DATE,
        ],
    )
    def test_malformed_is_none(self, value):
        assert parse_date_header(value) is None


class TestMatchesEtag:
    def test_equal(self):
        assert matches_etag("abc123", "abc123") is True

    def test_case_sensitive(self):
        assert matches_etag("abc123", "ABC123") is False

    def test_no_weak_parsing(self):
        assert matches_etag("abc123", 'W/"abc123"') is False

    def test_absent_values(self):
        assert matches_etag(None, "abc") is False
        assert matches_etag("abc", None) is False
        assert matches_etag("", "") is False


class TestMatchesLastModified:
    def test_older_resource_matches(self):
        assert matches_last_modified(NOW - 10, NOW_HTTP_DATE) is True

    def test_equal_matches(self):
        assert matches_last_modified(NOW, NOW_HTTP_DATE) is True

    def test_newer_resource_does_not_match(self):
        assert matches_last_modified(NOW + 1, NOW_HTTP_DATE) is False

    def test_absent_header(self):
        assert matches_last_modified(NOW, None) is False

    def test_malformed_header(self):
        assert matches_last_modified(NOW, "yesterday-ish") is False

    def test_no_declared_value(self):
        assert matches_last_modified(None, NOW_HTTP_DATE) is False


class TestIsNotModified:
    def test_etag_takes_precedence(self):
        # Last-Modified would match, but the declared ETag does not
        assert is_not_modified("v2", NOW - 10, "v1", NOW_HTTP_DATE) is False

    def test_etag_match_ignores_last_modified(self):
        assert is_not_modified("v1", NOW + 100, "v1", NOW_HTTP_DATE) is True

    def test_last_modified_used_without_etag(self):
        assert is_not_modified(None, NOW - 10, None, NOW_HTTP_DATE) is True

    def test_nothing_declared(self):
        assert is_not_modified(None, None, "v1", NOW_HTTP_DATE) is False


class TestBuildCacheControl:
    def test_public_max_age(self):
        assert build_cache_control(3600, ["public"]) == "public, max-age=3600"

    def test_default_keywords(self):
        assert build_cache_control(60) == "public, max-age=60"

    def test_extends_given_list(self):
        keywords = ["private", "must-revalidate"]
        assert build_cache_control(0, keywords) == "private, must-revalidate, max-age=0"
        assert keywords == ["private", "must-revalidate", "max-age=0"]
