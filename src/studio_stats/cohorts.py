# src/studio_stats/cohorts.py
"""
Split new clients into (teacher, location, period) cohorts after removing
friends, family and staff visits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from . import config
from .dates import get_month_year_from_date
from .patterns import classify_channels, matches_pattern_series

logger = logging.getLogger(__name__)

MEMBERSHIP_EXCLUSION_REASON = "Friends, family, or staff membership"
CLASS_EXCLUSION_REASON = "Friends, family, or staff class type"


@dataclass(frozen=True)
class Cohort:
    teacher: str
    location: str
    period: str
    clients: pd.DataFrame

    @property
    def size(self) -> int:
        return len(self.clients)


def add_periods(frame: pd.DataFrame, date_column: str) -> pd.DataFrame:
    """Copy of ``frame`` with a "Mon YY" ``period`` column derived from ``date_column``."""
    df = frame.copy()
    df["period"] = df[date_column].map(get_month_year_from_date).astype("object")
    return df


def split_exclusions(new_clients: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Return ``(eligible, excluded)``.

    ``excluded`` holds each friends/family/staff record once, with a
    ``reason`` naming the field that triggered the exclusion.
    """
    by_membership = matches_pattern_series(new_clients["membership_used"], config.EXCLUDED_PATTERN)
    by_class = matches_pattern_series(new_clients["first_visit"], config.EXCLUDED_PATTERN)
    mask = by_membership | by_class

    excluded = new_clients[mask].copy()
    excluded["reason"] = by_membership[mask].map(
        {True: MEMBERSHIP_EXCLUSION_REASON, False: CLASS_EXCLUSION_REASON}
    )
    eligible = new_clients[~mask].copy()
    logger.info("Excluded %d friends/family/staff records", len(excluded))
    return eligible, excluded.reset_index(drop=True)


def build_cohorts(
    eligible: pd.DataFrame,
    teachers: list[str],
    locations: list[str],
    periods: list[str],
) -> list[Cohort]:
    """
    Group eligible clients by teacher, location and period in one pass.

    Only teachers from the bookings export form cohorts, so clients whose
    teacher is "Unknown" never land in one. Cohorts come back ordered by
    the position of their teacher, location and period in the given lists.
    """
    if eligible.empty or not teachers:
        return []

    df = eligible[eligible["teacher"].isin(teachers)].copy()
    if df.empty:
        return []
    df["channel"] = classify_channels(df)

    teacher_rank = {name: i for i, name in enumerate(teachers)}
    location_rank = {name: i for i, name in enumerate(locations)}
    period_rank = {name: i for i, name in enumerate(periods)}

    cohorts = [
        Cohort(teacher=teacher, location=location, period=period, clients=group)
        for (teacher, location, period), group in df.groupby(
            ["teacher", "first_visit_location", "period"], sort=False
        )
    ]
    cohorts.sort(
        key=lambda c: (teacher_rank[c.teacher], location_rank[c.location], period_rank[c.period])
    )
    logger.info("Built %d cohorts from %d eligible clients", len(cohorts), len(df))
    return cohorts


def booking_teachers(bookings: pd.DataFrame) -> list[str]:
    """Distinct teacher names in bookings order, without blanks or "Unknown"."""
    names = bookings["teacher"]
    names = names[(names != "") & (names != config.UNKNOWN)]
    return list(dict.fromkeys(names))


def distinct_in_order(values: pd.Series) -> list[str]:
    return list(dict.fromkeys(values))
