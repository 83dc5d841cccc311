from __future__ import annotations

import pytest

from studio_stats.conversion import evaluate_conversion
from studio_stats.data_prep import to_new_clients_frame, to_sales_frame
from studio_stats.patterns import classify_channels


def _clients(rows):
    df = to_new_clients_frame(rows)
    df["channel"] = classify_channels(df)
    return df


def test_qualifying_sale_converts_client(make_new_client, make_sale) -> None:
    result = evaluate_conversion(_clients([make_new_client()]), to_sales_frame([make_sale()]))

    assert result.converted_emails == ["a@x.com"]
    assert result.conversion_rate == 100.0
    assert result.total_revenue == 100.0
    assert result.average_revenue_per_client == 100.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"category": "Retail Product"},
        {"category": "Money Credits"},
        {"item": "Newcomers 2 for 1"},
        {"value": "0"},
        {"refunded": "YES"},
        {"date": "2024-01-05"},
        {"date": "2024-01-01"},
        {"email": "someone@else.com"},
    ],
)
def test_non_qualifying_sales_are_ignored(make_new_client, make_sale, overrides) -> None:
    result = evaluate_conversion(
        _clients([make_new_client()]), to_sales_frame([make_sale(**overrides)])
    )
    assert result.converted_emails == []
    assert result.conversion_rate == 0.0
    assert result.total_revenue == 0.0
    assert result.average_revenue_per_client == 0.0


def test_paying_customer_email_also_matches(make_new_client, make_sale) -> None:
    sales = to_sales_frame([make_sale(email="parent@x.com", paying_email="a@x.com")])
    result = evaluate_conversion(_clients([make_new_client()]), sales)
    assert result.converted_emails == ["a@x.com"]


def test_client_detail_aggregates_all_qualifying_sales(make_new_client, make_sale) -> None:
    sales = to_sales_frame(
        [
            make_sale(date="2024-02-10", value="60", item="Monthly"),
            make_sale(date="2024-01-20", value="100", item="10-pack"),
            make_sale(date="2024-01-25", value="20", category="Retail Product"),
        ]
    )
    result = evaluate_conversion(_clients([make_new_client()]), sales)

    detail = result.details[0]
    assert detail.value == 160.0
    assert detail.first_purchase_date == "2024-01-20"
    assert detail.membership_type == "10-pack"
    assert detail.first_visit == "2024-01-05"
    assert result.total_revenue == 160.0
    assert len(result.records) == 2
    assert set(result.records["first_purchase_date"]) == {"2024-01-20"}


def test_channel_conversions_count_distinct_clients(make_new_client, make_sale) -> None:
    clients = _clients(
        [
            make_new_client(membership="Studio Complimentary Referral Class"),
            make_new_client(email="b@x.com", membership="Influencer link"),
        ]
    )
    sales = to_sales_frame([make_sale(), make_sale(date="2024-01-22")])
    result = evaluate_conversion(clients, sales)

    assert result.channel_conversions == {"trial": 0, "referral": 1, "influencer": 0}
    assert result.conversion_rate == 50.0
    assert result.average_revenue_per_client == 200.0


def test_no_sales_data(make_new_client) -> None:
    result = evaluate_conversion(_clients([make_new_client()]), to_sales_frame(None))
    assert result.converted_emails == []
    assert result.records.empty


def test_repeated_email_counts_once_per_cohort_row(make_new_client, make_sale) -> None:
    trial = make_new_client(membership="Newcomers 2 For 1")
    clients = _clients([trial, trial])
    result = evaluate_conversion(clients, to_sales_frame([make_sale()]))

    assert result.converted_clients == 2
    assert result.conversion_rate == 100.0
    assert result.converted_emails == ["a@x.com"]
    assert result.channel_conversions["trial"] == 2
