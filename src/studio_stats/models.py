# src/studio_stats/models.py
"""
Result records produced by the metrics pipeline.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ClientDetail:
    email: str
    name: str
    date: str
    value: float | None = None
    visit_count: int | None = None
    membership_type: str = ""
    first_visit: str | None = None
    first_purchase_date: str | None = None


@dataclass(frozen=True)
class WeeklyRevenue:
    week: str  # Sunday that opens the week, YYYY-MM-DD
    revenue: float


@dataclass(frozen=True)
class SourceCount:
    source: str
    count: int


@dataclass(frozen=True)
class TeacherMetrics:
    """Performance of one (teacher, location, period) cohort, or a location roll-up."""

    teacher_name: str
    location: str
    period: str

    new_clients: int = 0
    trials: int = 0
    referrals: int = 0
    hosted: int = 0
    influencer_signups: int = 0
    others: int = 0

    retained_clients: int = 0
    retention_rate: float = 0.0

    converted_clients: int = 0
    conversion_rate: float = 0.0
    total_revenue: float = 0.0
    average_revenue_per_client: float = 0.0

    total_bookings: int = 0
    total_visits: int = 0
    cancellations: int = 0
    late_cancellations: int = 0
    no_shows: int = 0
    total_classes: int = 0
    unique_clients: int = 0
    no_show_rate: float = 0.0
    late_cancellation_rate: float = 0.0

    first_time_buyer_rate: float = 0.0
    trial_conversions: int = 0
    referral_conversions: int = 0
    influencer_conversions: int = 0
    influencer_conversion_rate: float = 0.0
    referral_conversion_rate: float = 0.0
    trial_to_membership_conversion: float = 0.0

    new_client_details: list[ClientDetail] = field(default_factory=list)
    retained_client_details: list[ClientDetail] = field(default_factory=list)
    converted_client_details: list[ClientDetail] = field(default_factory=list)
    revenue_by_week: list[WeeklyRevenue] = field(default_factory=list)
    clients_by_source: list[SourceCount] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def rate(numerator: float, denominator: float) -> float:
    """Percentage, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator * 100
