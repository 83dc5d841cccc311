from __future__ import annotations

from studio_stats.attribution import attach_teachers
from studio_stats.cohorts import (
    MEMBERSHIP_EXCLUSION_REASON,
    CLASS_EXCLUSION_REASON,
    add_periods,
    booking_teachers,
    build_cohorts,
    distinct_in_order,
    split_exclusions,
)
from studio_stats.data_prep import to_bookings_frame, to_new_clients_frame


def _enriched(new_rows, booking_rows):
    bookings = to_bookings_frame(booking_rows)
    new = attach_teachers(to_new_clients_frame(new_rows), bookings)
    return add_periods(new, "first_visit_at"), bookings


def test_exclusions_are_reported_once_with_the_triggering_field(
    make_new_client, make_booking
) -> None:
    enriched, _ = _enriched(
        [
            make_new_client(email="s@x.com", membership="Staff Pass"),
            make_new_client(email="f@x.com", first_visit="Friends Barre"),
            make_new_client(email="a@x.com"),
        ],
        [make_booking()],
    )
    eligible, excluded = split_exclusions(enriched)

    assert excluded["email"].tolist() == ["s@x.com", "f@x.com"]
    assert excluded["reason"].tolist() == [MEMBERSHIP_EXCLUSION_REASON, CLASS_EXCLUSION_REASON]
    assert eligible["email"].tolist() == ["a@x.com"]


def test_cohorts_group_by_teacher_location_and_period(make_new_client, make_booking) -> None:
    new_rows = [
        make_new_client(email="a@x.com", first_visit_at="2024-01-05"),
        make_new_client(email="b@x.com", first_visit_at="2024-02-02"),
        make_new_client(email="c@x.com", first_visit_at="2024-01-09"),
        make_new_client(email="d@x.com", first_visit_at="2024-01-05", location="Loc2"),
    ]
    booking_rows = [
        make_booking(email="b@x.com", class_date="2024-02-02", teacher="Zoe"),
        make_booking(email="a@x.com", class_date="2024-01-05", teacher="Jane"),
        make_booking(email="c@x.com", class_date="2024-01-09", teacher="Jane"),
        make_booking(email="d@x.com", class_date="2024-01-05", teacher="Jane", location="Loc2"),
    ]
    enriched, bookings = _enriched(new_rows, booking_rows)
    eligible, _ = split_exclusions(enriched)

    cohorts = build_cohorts(
        eligible,
        booking_teachers(bookings),
        distinct_in_order(enriched["first_visit_location"]),
        distinct_in_order(enriched["period"]),
    )

    assert [(c.teacher, c.location, c.period, c.size) for c in cohorts] == [
        ("Zoe", "Loc1", "Feb 24", 1),
        ("Jane", "Loc1", "Jan 24", 2),
        ("Jane", "Loc2", "Jan 24", 1),
    ]
    assert "channel" in cohorts[0].clients.columns


def test_clients_without_a_teacher_form_no_cohort(make_new_client, make_booking) -> None:
    enriched, bookings = _enriched([make_new_client()], [make_booking(class_date="2024-03-01")])
    eligible, _ = split_exclusions(enriched)

    cohorts = build_cohorts(
        eligible,
        booking_teachers(bookings),
        distinct_in_order(enriched["first_visit_location"]),
        distinct_in_order(enriched["period"]),
    )
    assert cohorts == []


def test_booking_teachers_skip_blank_and_unknown(make_booking) -> None:
    bookings = to_bookings_frame(
        [
            make_booking(teacher="Jane"),
            make_booking(teacher=""),
            make_booking(teacher="Unknown"),
            make_booking(teacher="Jane"),
            make_booking(teacher="Abe"),
        ]
    )
    assert booking_teachers(bookings) == ["Jane", "Abe"]
