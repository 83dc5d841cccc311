# src/studio_stats/metrics.py
"""
Turn evaluated cohorts into TeacherMetrics records and fold them into one
"All Teachers" record per location.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from . import config
from .cohorts import Cohort
from .conversion import ConversionResult, evaluate_conversion
from .dates import sort_periods, week_start
from .models import ClientDetail, SourceCount, TeacherMetrics, WeeklyRevenue, rate
from .retention import RetentionResult, attended, evaluate_retention

BOOKING_GROUP_KEYS = ["teacher", "location", "period"]

SOURCE_LABELS = {
    "trials": "Trials",
    "referrals": "Referrals",
    "hosted": "Hosted",
    "influencer_signups": "Influencer",
    "others": "Others",
}

SUMMED_FIELDS = [
    "new_clients",
    "trials",
    "referrals",
    "hosted",
    "influencer_signups",
    "others",
    "retained_clients",
    "converted_clients",
    "total_revenue",
    "total_bookings",
    "total_visits",
    "cancellations",
    "late_cancellations",
    "no_shows",
    "total_classes",
    "unique_clients",
    "trial_conversions",
    "referral_conversions",
    "influencer_conversions",
]

MONTHLY_METRICS = (
    "total_visits",
    "cancellations",
    "late_cancellations",
    "no_shows",
    "new_clients",
    "retained_clients",
    "converted_clients",
    "total_classes",
    "unique_clients",
    "total_revenue",
)


@dataclass(frozen=True)
class BookingTallies:
    total_bookings: int = 0
    total_visits: int = 0
    cancellations: int = 0
    late_cancellations: int = 0
    no_shows: int = 0
    total_classes: int = 0
    unique_clients: int = 0
    no_show_rate: float = 0.0
    late_cancellation_rate: float = 0.0


@dataclass(frozen=True)
class CohortEvaluation:
    metrics: TeacherMetrics
    retention: RetentionResult
    conversion: ConversionResult


def group_bookings(bookings: pd.DataFrame) -> dict[tuple[str, str, str], pd.DataFrame]:
    """Index bookings (with a ``period`` column) by teacher, location and class period."""
    if bookings.empty:
        return {}
    return {key: group for key, group in bookings.groupby(BOOKING_GROUP_KEYS, sort=False)}


def booking_tallies(teacher_bookings: pd.DataFrame) -> BookingTallies:
    """Attendance counts for one teacher/location/period slice of the bookings."""
    total = len(teacher_bookings)
    if total == 0:
        return BookingTallies()

    no_shows = int((teacher_bookings["no_show"] == config.FLAG_YES).sum())
    late_cancellations = int((teacher_bookings["late_cancelled"] == config.FLAG_YES).sum())
    return BookingTallies(
        total_bookings=total,
        total_visits=int(attended(teacher_bookings).sum()),
        cancellations=int((teacher_bookings["cancelled"] == config.FLAG_YES).sum()),
        late_cancellations=late_cancellations,
        no_shows=no_shows,
        total_classes=int(teacher_bookings["class_name"].nunique()),
        unique_clients=int(teacher_bookings["customer_email"].nunique()),
        no_show_rate=rate(no_shows, total),
        late_cancellation_rate=rate(late_cancellations, total),
    )


def channel_counts(clients: pd.DataFrame) -> dict[str, int]:
    counts = clients["channel"].value_counts()
    trials = int(counts.get("trial", 0))
    referrals = int(counts.get("referral", 0))
    hosted = int(counts.get("hosted", 0))
    influencer_signups = int(counts.get("influencer", 0))
    return {
        "trials": trials,
        "referrals": referrals,
        "hosted": hosted,
        "influencer_signups": influencer_signups,
        "others": len(clients) - trials - referrals - hosted - influencer_signups,
    }


def revenue_by_week(sales: pd.DataFrame) -> list[WeeklyRevenue]:
    """Sum sale values per Sunday-start week, oldest week first."""
    if sales.empty:
        return []
    weeks = sales["date"].map(week_start)
    totals = sales["sale_value"].groupby(weeks).sum().sort_index()
    return [WeeklyRevenue(week=str(week), revenue=float(value)) for week, value in totals.items()]


def build_cohort_metrics(
    cohort: Cohort,
    bookings: pd.DataFrame,
    teacher_bookings: pd.DataFrame,
    sales: pd.DataFrame,
) -> CohortEvaluation:
    clients = cohort.clients
    new_clients = len(clients)
    channels = channel_counts(clients)
    tallies = booking_tallies(teacher_bookings)
    retention = evaluate_retention(clients, bookings)
    conversion = evaluate_conversion(clients, sales)
    converted = conversion.converted_clients

    new_client_details = [_new_client_detail(row) for row in clients.to_dict(orient="records")]

    metrics = TeacherMetrics(
        teacher_name=cohort.teacher,
        location=cohort.location,
        period=cohort.period,
        new_clients=new_clients,
        **channels,
        retained_clients=retention.retained_clients,
        retention_rate=retention.retention_rate,
        converted_clients=converted,
        conversion_rate=conversion.conversion_rate,
        total_revenue=conversion.total_revenue,
        average_revenue_per_client=conversion.average_revenue_per_client,
        total_bookings=tallies.total_bookings,
        total_visits=tallies.total_visits,
        cancellations=tallies.cancellations,
        late_cancellations=tallies.late_cancellations,
        no_shows=tallies.no_shows,
        total_classes=tallies.total_classes,
        unique_clients=tallies.unique_clients,
        no_show_rate=tallies.no_show_rate,
        late_cancellation_rate=tallies.late_cancellation_rate,
        first_time_buyer_rate=rate(converted, new_clients),
        trial_conversions=conversion.channel_conversions["trial"],
        referral_conversions=conversion.channel_conversions["referral"],
        influencer_conversions=conversion.channel_conversions["influencer"],
        influencer_conversion_rate=rate(
            conversion.channel_conversions["influencer"], channels["influencer_signups"]
        ),
        referral_conversion_rate=rate(
            conversion.channel_conversions["referral"], channels["referrals"]
        ),
        trial_to_membership_conversion=rate(
            conversion.channel_conversions["trial"], channels["trials"]
        ),
        new_client_details=new_client_details,
        retained_client_details=retention.details,
        converted_client_details=conversion.details,
        revenue_by_week=revenue_by_week(conversion.qualifying_sales),
        clients_by_source=_sources(channels),
    )
    return CohortEvaluation(metrics=metrics, retention=retention, conversion=conversion)


def rollup_by_location(records: Iterable[TeacherMetrics]) -> list[TeacherMetrics]:
    """
    One "All Teachers" record per location, in order of first appearance.

    Counts and revenue are summed, rates are recomputed from the sums, detail
    lists are concatenated and the weekly/source series are merged by key.
    """
    by_location: dict[str, list[TeacherMetrics]] = {}
    for record in records:
        if record.teacher_name == config.ALL_TEACHERS:
            continue
        by_location.setdefault(record.location, []).append(record)

    return [_combine(location, group) for location, group in by_location.items()]


def metrics_to_frame(records: Iterable[TeacherMetrics]) -> pd.DataFrame:
    """Flat table of the scalar metrics; detail lists and chart series are left out."""
    nested = {
        "new_client_details",
        "retained_client_details",
        "converted_client_details",
        "revenue_by_week",
        "clients_by_source",
    }
    rows = [
        {key: value for key, value in record.to_dict().items() if key not in nested}
        for record in records
    ]
    if not rows:
        return pd.DataFrame(
            columns=[key for key in TeacherMetrics.__dataclass_fields__ if key not in nested]
        )
    return pd.DataFrame(rows)


def monthly_pivot(records: Iterable[TeacherMetrics], metric: str = "total_visits") -> pd.DataFrame:
    """
    Teacher by period table of one summed metric, most recent period first.

    Location roll-ups are left out; a final "Total" row sums every teacher
    for each period.
    """
    if metric not in MONTHLY_METRICS:
        raise ValueError(
            f"Unsupported monthly metric {metric!r}; expected one of {', '.join(MONTHLY_METRICS)}"
        )

    df = metrics_to_frame(records)
    df = df[df["teacher_name"] != config.ALL_TEACHERS]
    if df.empty:
        return pd.DataFrame(index=pd.Index([], name="teacher_name"))

    table = df.pivot_table(
        index="teacher_name",
        columns="period",
        values=metric,
        aggfunc="sum",
        fill_value=0,
    )
    table = table[sort_periods(table.columns)]
    table.loc[config.MONTHLY_TOTAL] = table.sum()
    return table


# ---------------------------------------------------------------------------
# Internal helpers


def _new_client_detail(row: dict[str, object]) -> ClientDetail:
    return ClientDetail(
        email=str(row["email"]),
        name=f"{row['first_name']} {row['last_name']}".strip(),
        date=str(row["first_visit_at"]),
        membership_type=str(row["membership_used"]),
    )


def _sources(channels: dict[str, int]) -> list[SourceCount]:
    return [SourceCount(source=label, count=channels[key]) for key, label in SOURCE_LABELS.items()]


def _combine(location: str, group: list[TeacherMetrics]) -> TeacherMetrics:
    totals = {name: sum(getattr(record, name) for record in group) for name in SUMMED_FIELDS}
    periods = list(dict.fromkeys(record.period for record in group))
    period = periods[0] if len(periods) == 1 else config.ALL_PERIODS

    weekly: dict[str, float] = {}
    for record in group:
        for entry in record.revenue_by_week:
            weekly[entry.week] = weekly.get(entry.week, 0.0) + entry.revenue

    sources: dict[str, int] = {}
    for record in group:
        for entry in record.clients_by_source:
            sources[entry.source] = sources.get(entry.source, 0) + entry.count

    return TeacherMetrics(
        teacher_name=config.ALL_TEACHERS,
        location=location,
        period=period,
        **totals,
        retention_rate=rate(totals["retained_clients"], totals["new_clients"]),
        conversion_rate=rate(totals["converted_clients"], totals["new_clients"]),
        average_revenue_per_client=(
            totals["total_revenue"] / totals["converted_clients"]
            if totals["converted_clients"]
            else 0.0
        ),
        no_show_rate=rate(totals["no_shows"], totals["total_bookings"]),
        late_cancellation_rate=rate(totals["late_cancellations"], totals["total_bookings"]),
        first_time_buyer_rate=rate(totals["converted_clients"], totals["new_clients"]),
        influencer_conversion_rate=rate(
            totals["influencer_conversions"], totals["influencer_signups"]
        ),
        referral_conversion_rate=rate(totals["referral_conversions"], totals["referrals"]),
        trial_to_membership_conversion=rate(totals["trial_conversions"], totals["trials"]),
        new_client_details=[d for record in group for d in record.new_client_details],
        retained_client_details=[d for record in group for d in record.retained_client_details],
        converted_client_details=[d for record in group for d in record.converted_client_details],
        revenue_by_week=[
            WeeklyRevenue(week=week, revenue=revenue) for week, revenue in sorted(weekly.items())
        ],
        clients_by_source=[SourceCount(source=source, count=n) for source, n in sources.items()],
    )
