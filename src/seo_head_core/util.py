from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")
_NON_TEXT_RE = re.compile(r"<(head|script|style|noscript)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_WS_RE = re.compile(r"\s+")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_SLASHES_RE = re.compile(r"/{2,}")

_DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y-%m-%d %H:%M",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def escape_attribute(value: Any) -> str:
    """Single escape routine for every emitted attribute value."""
    text = value if isinstance(value, str) else str(value)
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def is_present(value: Any) -> bool:
    """
    Presence test used by every priority chain.

    None, blank strings and empty containers are absent. False and 0 are present values.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return bool(value)
    return True


def lookup_path(tree: Any, path: str) -> Any:
    """Walk a dot-separated path through nested mappings; None when any hop is missing."""
    if not path or not isinstance(tree, Mapping):
        return None
    current: Any = tree
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def decode_contents(contents: Any) -> str | None:
    if isinstance(contents, (bytes, bytearray)):
        return bytes(contents).decode("utf-8", errors="replace")
    if isinstance(contents, str):
        return contents
    return None


def strip_html(text: str) -> str:
    """Visible text only: head, script and style blocks are dropped along with the tags."""
    text = _NON_TEXT_RE.sub(" ", text or "")
    text = _TAG_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def count_words(text: str) -> int:
    return len([w for w in strip_html(text).split(" ") if w])


def reading_time(word_count: int, *, words_per_minute: int = 200) -> str | None:
    if word_count <= 0:
        return None
    minutes = -(-word_count // words_per_minute)
    return f"{minutes} min read"


def truncate_text(text: str, max_length: int) -> str:
    """
    Shorten prose for descriptions.

    Prefers the last full sentence when it ends after 60% of the limit, then the last
    word boundary after 80% of the limit, then a hard cut. The last two get "...".
    """
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_sentence = truncated.rfind(".")
    last_space = truncated.rfind(" ")
    if last_sentence > max_length * 0.6:
        return text[: last_sentence + 1]
    if last_space > max_length * 0.8:
        return f"{text[:last_space]}..."
    return f"{truncated}..."


def truncate_title(title: str, max_length: int = 70) -> str:
    if len(title) <= max_length:
        return title
    truncated = title[:max_length]
    last_space = truncated.rfind(" ")
    if last_space >= max_length * 0.8:
        return f"{title[:last_space]}..."
    return f"{truncated}..."


def format_iso(dt: datetime) -> str:
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _as_utc(dt: datetime) -> datetime:
    # Naive timestamps are read as UTC so output does not depend on the build host.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_date_text(text: str) -> datetime | None:
    raw = text.strip()
    if not raw:
        return None
    iso = raw[:-1] + "+00:00" if raw[-1] in "Zz" else raw
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass
    # fromisoformat on older interpreters only accepts 3 or 6 fractional digits.
    m = re.match(r"^(.*T\d{2}:\d{2}:\d{2})\.(\d+)(.*)$", iso)
    if m:
        frac = (m.group(2) + "000000")[:6]
        try:
            return datetime.fromisoformat(f"{m.group(1)}.{frac}{m.group(3)}")
        except ValueError:
            pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    try:
        return parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        return None


def normalize_date(value: Any) -> str | None:
    """Normalize dates to ISO-8601 UTC (`YYYY-MM-DDTHH:MM:SS.sssZ`); anything unparsable is None."""
    if isinstance(value, datetime):
        return format_iso(_as_utc(value))
    if isinstance(value, date):
        return format_iso(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, str):
        parsed = _parse_date_text(value)
        if parsed is None:
            return None
        return format_iso(_as_utc(parsed))
    return None


def is_absolute_url(url: str) -> bool:
    return bool(_SCHEME_RE.match(url)) or url.startswith("//")


def absolutize_url(hostname: str, url: str) -> str:
    if is_absolute_url(url):
        return url
    base = hostname.rstrip("/")
    return f"{base}{'' if url.startswith('/') else '/'}{url}"


def join_url(hostname: str, path: str) -> str:
    """Join hostname and path, collapsing repeated slashes in the path part only."""
    base = hostname.rstrip("/")
    clean = _SLASHES_RE.sub("/", "/" + path.replace("\\", "/").lstrip("/"))
    return f"{base}{clean}"
