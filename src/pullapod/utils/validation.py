"""Validation helpers for user input."""

import re
from typing import Literal, NamedTuple
from urllib.parse import urlparse

from pullapod.utils.datetime import parse_date
from pullapod.utils.errors import ValidationError

MAX_FEED_NAME_LENGTH = 200

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")
_LANGUAGE_CODE = re.compile(r"^[a-zA-Z]{2}$")


class FeedReference(NamedTuple):
    """A feed given on the command line, either by numeric id or by URL."""

    kind: Literal["id", "url"]
    value: int | str


def validate_url(url: str) -> bool:
    """Return True for absolute http(s) URLs."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def require_valid_url(url: str) -> str:
    """Return the stripped URL or raise ValidationError."""
    if not validate_url(url):
        raise ValidationError(
            f"Invalid URL: {url}",
            suggestion="Provide a full URL such as https://example.com/feed.xml",
        )
    return url.strip()


def detect_feed_id_or_url(value: str) -> FeedReference:
    """Treat purely numeric input as a feed id, everything else as a URL."""
    text = value.strip()
    if text.isdigit():
        return FeedReference("id", int(text))
    return FeedReference("url", text)


def validate_date_format(value: str) -> bool:
    """Return True for valid ``YYYY-MM-DD`` calendar dates."""
    return parse_date(value) is not None


def require_valid_date(value: str, label: str = "date") -> None:
    """Raise ValidationError unless ``value`` is a ``YYYY-MM-DD`` date."""
    if not validate_date_format(value):
        raise ValidationError(
            f"Invalid {label} format: {value}",
            suggestion="Use YYYY-MM-DD, for example 2024-01-31",
        )


def validate_range(value: int, minimum: int, maximum: int, label: str = "Value") -> None:
    """Raise ValidationError unless ``minimum <= value <= maximum``."""
    if value < minimum or value > maximum:
        raise ValidationError(f"{label} must be between {minimum} and {maximum}")


def validate_language_code(code: str) -> bool:
    """Return True for two-letter ISO 639-1 codes (any case)."""
    return bool(_LANGUAGE_CODE.match(code))


def sanitize_search_query(query: str) -> str:
    """Trim surrounding whitespace from a search query."""
    return query.strip()


def sanitize_feed_name(name: str) -> str:
    """Clean a favorite's display name.

    Removes control characters, collapses whitespace, trims and caps the
    length at 200 characters.
    """
    cleaned = _CONTROL_CHARS.sub("", name)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:MAX_FEED_NAME_LENGTH].strip()
