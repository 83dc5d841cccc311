# src/studio_stats/dates.py
"""
Date helpers for the heterogeneous date strings found in studio exports.

Every helper is total: bad input degrades to a default instead of raising.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable

import pandas as pd

from . import config

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _is_missing(raw: object) -> bool:
    if raw is None:
        return True
    try:
        return bool(pd.isna(raw))
    except (TypeError, ValueError):
        return False


def _parse_loose(text: str) -> pd.Timestamp | None:
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return pd.Timestamp(parsed)


def format_date_string(raw: object) -> str:
    """
    Reduce a date or datetime string to ``YYYY-MM-DD``.

    Handles ``2025-03-11``, ``2025-03-11, 9:37 AM`` and anything the general
    pandas parser understands. Unparseable input is returned unchanged.
    """
    if _is_missing(raw):
        return ""
    text = str(raw).strip()
    if not text:
        return ""
    if _ISO_DATE.fullmatch(text):
        return text

    embedded = _ISO_DATE.search(text)
    if embedded:
        return embedded.group(0)

    parsed = _parse_loose(text)
    if parsed is None and "," in text:
        parsed = _parse_loose(text.split(",")[0].strip())
    if parsed is None:
        return text
    return parsed.strftime("%Y-%m-%d")


def parse_date(raw: object) -> pd.Timestamp | None:
    text = format_date_string(raw)
    if not _ISO_DATE.fullmatch(text):
        return None
    try:
        return pd.Timestamp(text)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_dates(values: pd.Series) -> pd.Series:
    """Vectorised ``parse_date``; unparseable entries become NaT."""
    canonical = values.map(format_date_string)
    return pd.to_datetime(canonical, format="%Y-%m-%d", errors="coerce")


def days_between_dates(date_a: object, date_b: object) -> int:
    first = parse_date(date_a)
    second = parse_date(date_b)
    if first is None or second is None:
        return 0
    return abs((first - second).days)


def is_date_after(date_a: object, date_b: object) -> bool:
    """Strictly later; False when either side cannot be parsed."""
    first = parse_date(date_a)
    second = parse_date(date_b)
    if first is None or second is None:
        return False
    return first > second


def get_month_year_from_date(raw: object) -> str:
    parsed = parse_date(raw)
    if parsed is None:
        return config.UNKNOWN
    return parsed.strftime(config.PERIOD_FORMAT)


def week_start(raw: object) -> str | None:
    """Sunday that opens the week containing ``raw``, as ``YYYY-MM-DD``."""
    parsed = parse_date(raw)
    if parsed is None:
        return None
    offset = (parsed.dayofweek + 1) % 7  # Monday == 0
    return (parsed - pd.Timedelta(days=offset)).strftime("%Y-%m-%d")


def _period_key(label: str) -> datetime | None:
    try:
        return datetime.strptime(label, config.PERIOD_FORMAT)
    except (TypeError, ValueError):
        return None


def sort_periods(periods: Iterable[str]) -> list[str]:
    """Most recent period first; labels that are not periods go last."""
    labels = list(periods)
    dated = [label for label in labels if _period_key(label) is not None]
    undated = [label for label in labels if _period_key(label) is None]
    dated.sort(key=_period_key, reverse=True)
    return dated + undated
