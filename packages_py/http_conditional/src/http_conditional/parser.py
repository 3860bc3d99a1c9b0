"""
Conditional header parsing and validator comparison utilities.
"""
import time
from datetime import datetime, timezone
from email.utils import formatdate, parsedate_to_datetime
from typing import Dict, List, Optional, Union

REVALIDATE_CACHE_CONTROL = "private, must-revalidate, max-age=0"
"""Cache-Control written on negotiated responses to force revalidation."""

DEFAULT_CACHE_CONTROL_KEYWORDS = ("public",)


def get_header_value(headers: Dict[str, str], key: str) -> Optional[str]:
    """Get header value case-insensitively."""
    lower_key = key.lower()
    for k, v in headers.items():
        if k.lower() == lower_key:
            return v
    return None


def to_timestamp(value: Union[datetime, float, int]) -> float:
    """Convert a datetime or epoch seconds to a Unix timestamp."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    return float(value)


def parse_date_header(header: Optional[str]) -> Optional[float]:
    """Parse an HTTP-date header to a timestamp. Malformed values give None."""
    if not header:
        return None
    try:
        dt = parsedate_to_datetime(header)
    except Exception:
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def format_http_date(value: Union[datetime, float, int, None] = None) -> str:
    """Format a timestamp as an IMF-fixdate (RFC 7231)."""
    timestamp = time.time() if value is None else to_timestamp(value)
    return formatdate(timestamp, usegmt=True)


def matches_etag(declared_etag: Optional[str], if_none_match: Optional[str]) -> bool:
    """Exact, case-sensitive comparison. Weak validators are not parsed."""
    if not declared_etag or not if_none_match:
        return False
    return declared_etag == if_none_match


def matches_last_modified(
    declared_last_modified: Optional[float], if_modified_since: Optional[str]
) -> bool:
    """True when the resource is no newer than If-Modified-Since."""
    if declared_last_modified is None:
        return False
    since = parse_date_header(if_modified_since)
    if since is None:
        return False
    return declared_last_modified <= since


def is_not_modified(
    etag: Optional[str],
    last_modified: Optional[float],
    if_none_match: Optional[str],
    if_modified_since: Optional[str],
) -> bool:
    """
    Combined verdict: ETag wins when declared, Last-Modified is only
    consulted when there is no ETag.
    """
    if etag:
        return matches_etag(etag, if_none_match)
    return matches_last_modified(last_modified, if_modified_since)


def build_cache_control(max_age: int, keywords: Optional[List[str]] = None) -> str:
    """
    Build a Cache-Control value from keywords and a max-age in seconds.

    The given keyword list is extended in place with the max-age directive.
    """
    if keywords is None:
        keywords = list(DEFAULT_CACHE_CONTROL_KEYWORDS)
    keywords.append(f"max-age={max_age}")
    return ", ".join(keywords)
