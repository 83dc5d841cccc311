from __future__ import annotations

from studio_stats.dedup import deduplicate_clients_by_email, deduplicate_records


def test_first_record_per_key_wins() -> None:
    records = [
        {"email": "a@x.com", "n": 1},
        {"email": "b@x.com", "n": 2},
        {"email": "a@x.com", "n": 3},
    ]
    assert [r["n"] for r in deduplicate_clients_by_email(records)] == [1, 2]


def test_records_without_key_are_kept() -> None:
    records = [{"email": ""}, {"email": ""}, {"other": 1}]
    assert len(deduplicate_clients_by_email(records)) == 3


def test_key_lookup_falls_back_to_capitalised_name() -> None:
    records = [{"Email": "a@x.com"}, {"email": "a@x.com"}]
    assert deduplicate_records(records, "email") == [{"Email": "a@x.com"}]
