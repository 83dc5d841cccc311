# src/studio_stats/patterns.py
"""
Keyword matching for the free-text labels in the studio exports.

Patterns are raw regex fragments joined with ``|``; callers escape literal
text that contains regex metacharacters.
"""

from __future__ import annotations

import re
from typing import Iterable

import numpy as np
import pandas as pd

from . import config

CHANNELS = ("trial", "referral", "hosted", "influencer", "other")


def _join(patterns: str | Iterable[str]) -> str:
    if isinstance(patterns, str):
        return patterns
    return "|".join(patterns)


def matches_pattern(value: str | None, patterns: str | Iterable[str]) -> bool:
    """Case-insensitive search of ``patterns`` in ``value``; False for empty values."""
    if not value or not isinstance(value, str):
        return False
    return re.search(_join(patterns), value, flags=re.IGNORECASE) is not None


def matches_pattern_series(values: pd.Series, patterns: str | Iterable[str]) -> pd.Series:
    text = values.fillna("").astype(str)
    found = text.str.contains(_join(patterns), case=False, regex=True, na=False)
    return (found & (text != "")).astype(bool)


def is_trial(membership: str | None) -> bool:
    return matches_pattern(membership, config.TRIAL_PATTERN)


def is_referral(membership: str | None) -> bool:
    return membership == config.REFERRAL_MEMBERSHIP


def is_hosted(first_visit: str | None) -> bool:
    return matches_pattern(first_visit, config.HOSTED_PATTERN)


def is_influencer(membership: str | None) -> bool:
    return matches_pattern(membership, config.INFLUENCER_PATTERN)


def is_excluded(membership: str | None, first_visit: str | None) -> bool:
    return matches_pattern(membership, config.EXCLUDED_PATTERN) or matches_pattern(
        first_visit, config.EXCLUDED_PATTERN
    )


def classify_channels(clients: pd.DataFrame) -> pd.Series:
    """
    Assign each new client exactly one acquisition channel.

    Precedence is trial, referral, hosted, influencer; anything else is
    "other". Hosted is read from the first-visit class label, the rest from
    the membership label.
    """
    if clients.empty:
        return pd.Series([], index=clients.index, dtype="object")

    membership = clients["membership_used"]
    conditions = [
        matches_pattern_series(membership, config.TRIAL_PATTERN),
        membership.eq(config.REFERRAL_MEMBERSHIP),
        matches_pattern_series(clients["first_visit"], config.HOSTED_PATTERN),
        matches_pattern_series(membership, config.INFLUENCER_PATTERN),
    ]
    channels = np.select(conditions, list(CHANNELS[:-1]), default=CHANNELS[-1])
    return pd.Series(channels, index=clients.index, dtype="object")
