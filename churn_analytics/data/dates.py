"""
Tolerant date parsing and month-key helpers.
"""
from __future__ import annotations

import datetime as dt
import re
import warnings
from typing import Optional

import pandas as pd


_MONTH_ABBR = [
    "", "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
_MONTH_LOOKUP = {name: i for i, name in enumerate(_MONTH_ABBR) if name}

# Tried in order before falling back to pandas' parser
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%d %b %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%B %d %Y",
)

_NUMERIC_ONLY_RE = re.compile(r"^[\d.\s]+$")
_HAS_DIGIT_RE = re.compile(r"\d")


def parse_flexible_date(value) -> Optional[dt.datetime]:
    """Parse an export date string, returning None when it can't be read.

    Handles the "2025-10-31, 21:50:13" style by dropping the first comma.
    Never raises.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    text = text.replace(",", "", 1).strip()

    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue

    # Bare numbers ("5", "2025.5") are not dates
    if _NUMERIC_ONLY_RE.match(text):
        return None
    # Words alone ("now", "today") are relative, not recorded dates
    if not _HAS_DIGIT_RE.search(text):
        return None

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def month_key(date: dt.date) -> str:
    """Grouping label like "Oct 2025" (locale independent)."""
    return f"{_MONTH_ABBR[date.month]} {date.year}"


def month_key_from_string(value) -> Optional[str]:
    parsed = parse_flexible_date(value)
    return month_key(parsed) if parsed else None


def parse_month_key(key: str) -> Optional[tuple[int, int]]:
    """Inverse of month_key: "Oct 2025" → (2025, 10)."""
    parts = str(key).split()
    if len(parts) != 2 or parts[0] not in _MONTH_LOOKUP or not parts[1].isdigit():
        return None
    return int(parts[1]), _MONTH_LOOKUP[parts[0]]


def month_sort_key(key: str) -> tuple[int, int]:
    """Chronological sort key; unrecognised keys sort first."""
    return parse_month_key(key) or (0, 0)
