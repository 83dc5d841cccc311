# src/studio_stats/retention.py
"""
Decide which new clients came back after their first class.

A return visit is an attended booking (not cancelled, not late-cancelled,
not a no-show) dated strictly after the client's first visit. Clients whose
first visit was a "2 for 1" class need two return visits, everyone else one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from . import config
from .dates import parse_dates
from .dedup import deduplicate_clients_by_email
from .models import ClientDetail, rate

logger = logging.getLogger(__name__)

ATTENDANCE_FLAGS = ["cancelled", "late_cancelled", "no_show"]
AUDIT_COLUMNS = ["visits_count", "first_visit_post_trial", "reason"]


@dataclass(frozen=True)
class RetentionResult:
    retained_emails: list[str]
    retained_clients: int
    details: list[ClientDetail]
    records: pd.DataFrame
    retention_rate: float


def attended(bookings: pd.DataFrame) -> pd.Series:
    """True for bookings where every cancellation/no-show flag is NO."""
    return (bookings[ATTENDANCE_FLAGS] == config.FLAG_NO).all(axis=1)


def required_return_visits(first_visit: str) -> int:
    if config.TWO_FOR_ONE_MARKER in (first_visit or "").lower():
        return config.TWO_FOR_ONE_MIN_RETURN_VISITS
    return config.DEFAULT_MIN_RETURN_VISITS


def find_return_visits(clients: pd.DataFrame, bookings: pd.DataFrame) -> pd.DataFrame:
    # blank emails never identify a client
    with_email = clients[clients["email"] != ""]
    first_visits = with_email.drop_duplicates("email")[["email", "first_visit_at"]]
    candidates = bookings.merge(
        first_visits, left_on="customer_email", right_on="email", how="inner"
    )
    if candidates.empty:
        return candidates.assign(class_ts=pd.Series(dtype="datetime64[ns]"))

    class_ts = parse_dates(candidates["class_date"])
    after_first_visit = class_ts > parse_dates(candidates["first_visit_at"])
    visits = candidates[attended(candidates) & after_first_visit].copy()
    visits["class_ts"] = class_ts[visits.index]
    return visits


def evaluate_retention(clients: pd.DataFrame, bookings: pd.DataFrame) -> RetentionResult:
    visits = find_return_visits(clients, bookings)
    visit_counts = visits.groupby("customer_email").size()
    earliest_visit = (
        visits.sort_values("class_ts", kind="stable")
        .groupby("customer_email")["class_date"]
        .first()
    )

    audit_rows: list[dict[str, object]] = []
    for _, client in clients.iterrows():
        email = client["email"]
        count = int(visit_counts.get(email, 0))
        needed = required_return_visits(client["first_visit"])
        if count < needed:
            continue
        row = client.to_dict()
        row["visits_count"] = count
        row["first_visit_post_trial"] = earliest_visit.get(email, "N/A")
        row["reason"] = (
            "Had 2+ return visits after '2 For 1' trial"
            if needed == config.TWO_FOR_ONE_MIN_RETURN_VISITS
            else "Had 1+ return visits after initial trial"
        )
        audit_rows.append(row)

    retained = deduplicate_clients_by_email(audit_rows)
    details = [
        ClientDetail(
            email=str(row["email"]),
            name=_full_name(row),
            date=str(row["first_visit_post_trial"]),
            visit_count=int(row["visits_count"]),
            membership_type=str(row.get("membership_used", "")),
        )
        for row in retained
    ]
    records = pd.DataFrame(audit_rows, columns=list(clients.columns) + AUDIT_COLUMNS)

    result = RetentionResult(
        retained_emails=[detail.email for detail in details],
        retained_clients=len(audit_rows),
        details=details,
        records=records,
        retention_rate=rate(len(audit_rows), len(clients)),
    )
    logger.debug(
        "Retention: %d/%d (%.1f%%)", len(audit_rows), len(clients), result.retention_rate
    )
    return result


def _full_name(row: dict[str, object]) -> str:
    return f"{row.get('first_name', '')} {row.get('last_name', '')}".strip()
