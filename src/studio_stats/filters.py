from __future__ import annotations

from typing import Collection, Iterable

from .models import TeacherMetrics


def filter_metrics(
    records: Iterable[TeacherMetrics],
    periods: Collection[str] | None = None,
    teachers: Collection[str] | None = None,
    locations: Collection[str] | None = None,
) -> list[TeacherMetrics]:
    """Keep records inside every non-empty selection; an empty selection keeps everything."""
    selected = []
    for record in records:
        if periods and record.period not in periods:
            continue
        if teachers and record.teacher_name not in teachers:
            continue
        if locations and record.location not in locations:
            continue
        selected.append(record)
    return selected
