from __future__ import annotations

from studio_stats.filters import filter_metrics
from studio_stats.models import TeacherMetrics

RECORDS = [
    TeacherMetrics(teacher_name="Jane", location="Loc1", period="Jan 24"),
    TeacherMetrics(teacher_name="Joe", location="Loc1", period="Feb 24"),
    TeacherMetrics(teacher_name="Jane", location="Loc2", period="Feb 24"),
]


def test_empty_selections_keep_everything() -> None:
    assert filter_metrics(RECORDS) == RECORDS
    assert filter_metrics(RECORDS, [], [], []) == RECORDS


def test_selections_are_combined() -> None:
    selected = filter_metrics(RECORDS, periods=["Feb 24"], teachers=["Jane"])
    assert [(r.teacher_name, r.location) for r in selected] == [("Jane", "Loc2")]


def test_unmatched_selection_returns_nothing() -> None:
    assert filter_metrics(RECORDS, locations=["Loc9"]) == []
