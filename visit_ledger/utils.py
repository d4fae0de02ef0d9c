"""Shared utilities used across the visit ledger."""

import re
import unicodedata
from datetime import date, datetime
from typing import Optional

_PAREN_SUFFIX_RE = re.compile(r"[（(].*$")
_WHITESPACE_RE = re.compile(r"\s+")

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d")
_DATETIME_FORMATS = ("%Y-%m-%d %H:%M", "%Y/%m/%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y/%m/%d %H:%M:%S")


def normalize_label(value: str) -> str:
    """Normalize a free-text label to half-width characters with single spaces.

    Examples:
        >>> normalize_label("  Ｓａｔｏ　Ｋｅｎ ")
        'Sato Ken'
        >>> normalize_label("Ito  (may change)")
        'Ito'
    """
    value = unicodedata.normalize("NFKC", value)
    value = _PAREN_SUFFIX_RE.sub("", value)
    return _WHITESPACE_RE.sub(" ", value).strip()


def parse_date(value: str) -> Optional[date]:
    """Parse a calendar date from the formats seen in appointment exports.

    A trailing time component is ignored. Returns None if nothing matches.
    """
    value = value.strip()
    if not value:
        return None
    head = value.split(" ", 1)[0].split("T", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(head, fmt).date()
        except ValueError:
            continue
    return None


def parse_datetime(value: str) -> Optional[datetime]:
    """Parse an application timestamp. Date-only values become midnight."""
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    day = parse_date(value)
    if day is None:
        return None
    return datetime(day.year, day.month, day.day)


def safe_rate(numerator: int, denominator: int) -> float:
    """Return numerator / denominator, or 0.0 when the denominator is zero."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator
