# batwiki/utils.py
from __future__ import annotations

import html
import re
from datetime import datetime
from urllib.parse import quote, unquote_to_bytes

from batwiki import config
from batwiki.errors import ValidationError

_TAG_RE = re.compile(r"<[^>]*>")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# characters encodeURIComponent leaves alone, so URLs match what browsers produce
_URI_COMPONENT_SAFE = "!*'()"
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def sanitize_snippet(snippet: str) -> str:
    """
    Turn a search snippet into plain text: drop markup such as
    <span class="searchmatch">, then decode HTML entities.
    Text that is already plain comes back unchanged.
    Entities are decoded once, after the tags are gone, so "&lt;b&gt;" comes
    out as the literal text "<b>"; feeding that result back in would strip it.
    """
    return html.unescape(_TAG_RE.sub("", snippet)).strip()


def format_timestamp(timestamp: str) -> str:
    """
    Format an ISO-8601 timestamp as e.g. "Jan 1, 2024, 12:00 AM".
    Anything unparseable degrades to a placeholder instead of raising.
    """
    if not isinstance(timestamp, str) or not timestamp.strip():
        return config.UNKNOWN_DATE
    raw = timestamp.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        return config.UNKNOWN_DATE
    # fixed English names; strftime %b and %p follow the process locale
    hour = dt.hour % 12 or 12
    marker = "AM" if dt.hour < 12 else "PM"
    return f"{_MONTHS[dt.month - 1]} {dt.day}, {dt.year}, {hour:02d}:{dt.minute:02d} {marker}"


def article_url(title: str) -> str:
    """
    Canonical desktop URL for a page title ("Bruce Wayne" -> .../wiki/Bruce_Wayne).
    """
    key = title.replace(" ", "_")
    return f"{config.ARTICLE_BASE_URL}/{quote(key, safe=_URI_COMPONENT_SAFE)}"


def encode_title(title: str) -> str:
    """
    Percent-encode a title as a single URL path segment.
    """
    return quote(title, safe=_URI_COMPONENT_SAFE)


def decode_title(encoded_title: str) -> str:
    """
    Strict percent-decoding of a title taken from a URL path.
    Unlike urllib's unquote, stray '%' signs and invalid UTF-8 are errors.
    """
    if not isinstance(encoded_title, str):
        raise ValidationError(f"Title must be a string, got {type(encoded_title).__name__}")
    if _BAD_ESCAPE_RE.search(encoded_title):
        raise ValidationError(f"Malformed percent-encoding in title: {encoded_title!r}")
    try:
        title = unquote_to_bytes(encoded_title).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError(
            f"Title is not valid UTF-8 once decoded: {encoded_title!r}"
        ) from exc
    if not title.strip():
        raise ValidationError("Title must not be empty")
    return title
