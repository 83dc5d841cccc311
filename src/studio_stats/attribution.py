# src/studio_stats/attribution.py
"""
Attach the teacher of each new client's first class, found by matching the
client's first visit against the bookings export.
"""

from __future__ import annotations

import logging

import pandas as pd

from . import config

logger = logging.getLogger(__name__)

BOOKING_KEYS = ["customer_email", "class_name", "class_date", "location"]
CLIENT_KEYS = ["email", "first_visit", "first_visit_at", "first_visit_location"]


def attach_teachers(new_clients: pd.DataFrame, bookings: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of ``new_clients`` with a ``teacher`` column.

    A booking matches when customer email, class name, class date and
    location all equal the client's first-visit fields. The first matching
    booking in source order wins; clients without a match get "Unknown".
    """
    enriched = new_clients.copy()
    if enriched.empty:
        enriched["teacher"] = pd.Series([], index=enriched.index, dtype="object")
        return enriched

    first_bookings = bookings.drop_duplicates(subset=BOOKING_KEYS, keep="first")
    lookup = first_bookings[BOOKING_KEYS + ["teacher"]].rename(
        columns=dict(zip(BOOKING_KEYS, CLIENT_KEYS))
    )
    matched = enriched[CLIENT_KEYS].merge(lookup, on=CLIENT_KEYS, how="left")
    matched.index = enriched.index  # left merge on unique right keys keeps row order

    enriched["teacher"] = matched["teacher"].fillna(config.UNKNOWN)
    unmatched = int(matched["teacher"].isna().sum())
    logger.info(
        "Teacher attribution: %d of %d new clients matched a booking",
        len(enriched) - unmatched,
        len(enriched),
    )
    return enriched
