from __future__ import annotations

from studio_stats.data_prep import to_bookings_frame, to_new_clients_frame
from studio_stats.retention import evaluate_retention, required_return_visits


def test_two_for_one_needs_two_return_visits(make_new_client, make_booking) -> None:
    clients = to_new_clients_frame([make_new_client(first_visit="2 For 1 Trial")])
    first = make_booking(class_name="2 For 1 Trial")

    one_visit = to_bookings_frame([first, make_booking(class_date="2024-01-10")])
    assert evaluate_retention(clients, one_visit).retained_emails == []

    two_visits = to_bookings_frame(
        [first, make_booking(class_date="2024-01-10"), make_booking(class_date="2024-01-12")]
    )
    result = evaluate_retention(clients, two_visits)
    assert result.retained_emails == ["a@x.com"]
    assert result.retention_rate == 100.0


def test_other_clients_need_one_return_visit(make_new_client, make_booking) -> None:
    clients = to_new_clients_frame([make_new_client(), make_new_client(email="b@x.com")])
    bookings = to_bookings_frame([make_booking(), make_booking(class_date="2024-01-20")])

    result = evaluate_retention(clients, bookings)

    assert result.retained_emails == ["a@x.com"]
    assert result.retention_rate == 50.0


def test_cancelled_and_same_day_bookings_do_not_count(make_new_client, make_booking) -> None:
    clients = to_new_clients_frame([make_new_client()])
    bookings = to_bookings_frame(
        [
            make_booking(),
            make_booking(class_date="2024-01-05", class_name="Second class"),
            make_booking(class_date="2024-01-08", cancelled="YES"),
            make_booking(class_date="2024-01-09", late_cancelled="YES"),
            make_booking(class_date="2024-01-10", no_show="YES"),
        ]
    )
    result = evaluate_retention(clients, bookings)

    assert result.retained_emails == []
    assert result.records.empty
    assert result.retention_rate == 0.0


def test_detail_records_visit_count_and_earliest_return(make_new_client, make_booking) -> None:
    clients = to_new_clients_frame([make_new_client()])
    bookings = to_bookings_frame(
        [make_booking(class_date="2024-01-20"), make_booking(class_date="2024-01-12")]
    )
    result = evaluate_retention(clients, bookings)

    detail = result.details[0]
    assert detail.visit_count == 2
    assert detail.date == "2024-01-12"
    assert detail.name == "Ann Lee"
    assert result.records.loc[0, "first_visit_post_trial"] == "2024-01-12"
    assert result.records.loc[0, "reason"] == "Had 1+ return visits after initial trial"


def test_empty_cohort_has_zero_rate(make_booking) -> None:
    clients = to_new_clients_frame([])
    result = evaluate_retention(clients, to_bookings_frame([make_booking()]))
    assert result.retention_rate == 0.0


def test_required_return_visits() -> None:
    assert required_return_visits("Newcomers 2 for 1 Barre") == 2
    assert required_return_visits("Barre") == 1
    assert required_return_visits("") == 1


def test_repeated_email_counts_once_per_cohort_row(make_new_client, make_booking) -> None:
    clients = to_new_clients_frame([make_new_client(), make_new_client()])
    bookings = to_bookings_frame([make_booking(), make_booking(class_date="2024-01-12")])

    result = evaluate_retention(clients, bookings)

    assert result.retained_clients == 2
    assert result.retention_rate == 100.0
    assert result.retained_emails == ["a@x.com"]
    assert len(result.details) == 1


def test_blank_email_never_matches_bookings(make_new_client, make_booking) -> None:
    clients = to_new_clients_frame([make_new_client(email="")])
    bookings = to_bookings_frame(
        [make_booking(email=""), make_booking(email="", class_date="2024-01-12")]
    )

    result = evaluate_retention(clients, bookings)

    assert result.retained_clients == 0
    assert result.retained_emails == []
    assert result.retention_rate == 0.0
