"""Formatting helpers for terminal output and file names."""

import html
import re
from urllib.parse import urlparse

_ILLEGAL_FILENAME_CHARS = re.compile(r'[/\\?<>:*|"\x00-\x1f\x7f]')
_RESERVED_FILENAMES = re.compile(r"^(con|prn|aux|nul|com\d|lpt\d)(\..*)?$", re.IGNORECASE)
_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_EXTENSION_PATTERN = re.compile(r"\.([a-zA-Z0-9]+)$")

MAX_FILENAME_LENGTH = 255


def truncate_text(text: str, max_length: int) -> str:
    """Shorten text to ``max_length`` characters, preferring a word boundary.

    Truncated text ends with ``...`` and never exceeds ``max_length``.
    """
    if len(text) <= max_length:
        return text

    cut = text[: max(max_length - 3, 0)]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip() + "..."


def truncate_url(url: str, max_length: int = 50) -> str:
    """Shorten a URL for display while keeping scheme and host visible."""
    if len(url) <= max_length:
        return url

    parsed = urlparse(url)
    prefix = f"{parsed.scheme}://{parsed.netloc}" if parsed.scheme else ""
    if prefix and len(prefix) + 4 <= max_length:
        remaining = max_length - len(prefix) - 3
        return prefix + url[len(prefix) : len(prefix) + remaining] + "..."
    return url[: max_length - 3] + "..."


def strip_html(text: str) -> str:
    """Remove HTML tags, decode entities and collapse whitespace."""
    if not text:
        return ""
    without_tags = _TAG_PATTERN.sub(" ", text)
    return _WHITESPACE.sub(" ", html.unescape(without_tags)).strip()


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Pick the singular or plural form of a word for ``count``."""
    if count == 1:
        return singular
    return plural or f"{singular}s"


def format_number(value: int) -> str:
    """Format an integer with thousands separators."""
    return f"{value:,}"


def format_bytes(size: int) -> str:
    """Human readable byte size, e.g. ``1.5 MB``."""
    if size <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB", "TB"]
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def format_duration(seconds: int | None) -> str:
    """Format a duration in seconds as ``1h 5m`` / ``42m`` / ``30s``."""
    if not seconds or seconds <= 0:
        return "Unknown"

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m" if minutes else f"{hours}h"
    if minutes:
        return f"{minutes}m"
    return f"{secs}s"


def sanitize_for_filesystem(name: str) -> str:
    """Make a string safe to use as a file or directory name.

    Strips characters that are illegal on common filesystems, collapses
    whitespace and drops trailing periods. Falls back to ``episode`` when
    nothing usable remains.
    """
    sanitized = _ILLEGAL_FILENAME_CHARS.sub("", name)
    if sanitized in (".", "..") or _RESERVED_FILENAMES.match(sanitized):
        sanitized = ""
    sanitized = _WHITESPACE.sub(" ", sanitized).strip()
    sanitized = sanitized.rstrip(".").strip()

    encoded = sanitized.encode("utf-8")
    if len(encoded) > MAX_FILENAME_LENGTH:
        sanitized = encoded[:MAX_FILENAME_LENGTH].decode("utf-8", errors="ignore").strip()

    return sanitized or "episode"


def get_file_extension(url: str, default: str = "mp3") -> str:
    """Lower-cased file extension of the URL path, or ``default``."""
    try:
        path = urlparse(url).path
    except ValueError:
        return default
    match = _EXTENSION_PATTERN.search(path)
    return match.group(1).lower() if match else default
