# src/studio_stats/conversion.py
"""
Decide which new clients went on to buy something after their first class.

A sale qualifies for a client when:
  • the customer or paying-customer email is the client's email
  • it is dated strictly after the client's first visit
  • its category mentions neither "product" nor "money credits"
  • its item is not a "2 for 1" offer
  • its value is positive and it was not refunded
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd

from . import config
from .dates import parse_dates
from .models import ClientDetail, rate

logger = logging.getLogger(__name__)

AUDIT_COLUMNS = ["purchase_date", "sale_value", "purchase_item", "first_purchase_date", "reason"]
CONVERSION_REASON = "Made qualifying purchase after initial visit"
TRACKED_CHANNELS = ("trial", "referral", "influencer")


@dataclass(frozen=True)
class ConversionResult:
    qualifying_sales: pd.DataFrame
    converted_emails: list[str]
    converted_clients: int
    details: list[ClientDetail]
    records: pd.DataFrame
    total_revenue: float
    average_revenue_per_client: float
    conversion_rate: float
    channel_conversions: dict[str, int] = field(default_factory=dict)


def attribute_sales(clients: pd.DataFrame, sales: pd.DataFrame) -> pd.DataFrame:
    """
    Sales belonging to a client of ``clients``, with a ``client_email`` column.

    The customer email is tried before the paying-customer email. Blank
    emails never match.
    """
    emails = set(clients["email"]) - {""}
    by_customer = sales["customer_email"].where(sales["customer_email"].isin(emails))
    by_payer = sales["paying_customer_email"].where(sales["paying_customer_email"].isin(emails))
    client_email = by_customer.fillna(by_payer)
    return sales.assign(client_email=client_email).dropna(subset=["client_email"])


def qualifying_sales(clients: pd.DataFrame, sales: pd.DataFrame) -> pd.DataFrame:
    matched = attribute_sales(clients, sales)
    first_visits = clients.drop_duplicates("email")[["email", "first_visit_at"]].rename(
        columns={"email": "client_email"}
    )
    matched = matched.merge(first_visits, on="client_email", how="left")
    if matched.empty:
        return matched.assign(sale_ts=pd.Series(dtype="datetime64[ns]"))

    sale_ts = parse_dates(matched["date"])
    after_first_visit = sale_ts > parse_dates(matched["first_visit_at"])

    category = matched["category"].str.lower()
    excluded_category = pd.Series(False, index=matched.index)
    for name in config.EXCLUDED_SALE_CATEGORIES:
        excluded_category |= category.str.contains(name, regex=False)
    excluded_item = matched["item"].str.lower().str.contains(config.EXCLUDED_SALE_ITEM, regex=False)

    mask = (
        after_first_visit
        & ~excluded_category
        & ~excluded_item
        & (matched["sale_value"] > 0)
        & (matched["refunded"] != config.FLAG_YES)
    )
    qualifying = matched[mask].copy()
    qualifying["sale_ts"] = sale_ts[qualifying.index]
    return qualifying


def evaluate_conversion(clients: pd.DataFrame, sales: pd.DataFrame) -> ConversionResult:
    qualifying = qualifying_sales(clients, sales)
    converted_emails = list(dict.fromkeys(qualifying["client_email"]))
    # cohort rows, so repeated emails count like they do in new_clients
    converted_rows = clients[clients["email"].isin(converted_emails)]
    converted_clients = len(converted_rows)

    by_date = qualifying.sort_values("sale_ts", kind="stable")
    first_purchase = by_date.groupby("client_email")[["date", "item"]].first()
    totals = qualifying.groupby("client_email")["sale_value"].sum()
    client_rows = clients.drop_duplicates("email").set_index("email")

    details = []
    for email in converted_emails:
        client = client_rows.loc[email]
        details.append(
            ClientDetail(
                email=email,
                name=f"{client['first_name']} {client['last_name']}".strip(),
                date=first_purchase.at[email, "date"],
                value=float(totals[email]),
                membership_type=first_purchase.at[email, "item"],
                first_visit=client["first_visit_at"],
                first_purchase_date=first_purchase.at[email, "date"],
            )
        )

    records = _audit_records(clients, qualifying, first_purchase)
    total_revenue = float(qualifying["sale_value"].sum())

    if "channel" in converted_rows.columns:
        converted_channels = converted_rows["channel"]
    else:
        converted_channels = pd.Series([], dtype="object")
    channel_conversions = {
        channel: int((converted_channels == channel).sum()) for channel in TRACKED_CHANNELS
    }

    result = ConversionResult(
        qualifying_sales=qualifying,
        converted_emails=converted_emails,
        converted_clients=converted_clients,
        details=details,
        records=records,
        total_revenue=total_revenue,
        average_revenue_per_client=(
            total_revenue / converted_clients if converted_clients else 0.0
        ),
        conversion_rate=rate(converted_clients, len(clients)),
        channel_conversions=channel_conversions,
    )
    logger.debug(
        "Conversion: %d/%d (%.1f%%), revenue %.2f",
        converted_clients,
        len(clients),
        result.conversion_rate,
        total_revenue,
    )
    return result


def _audit_records(
    clients: pd.DataFrame, qualifying: pd.DataFrame, first_purchase: pd.DataFrame
) -> pd.DataFrame:
    columns = list(clients.columns) + AUDIT_COLUMNS
    if qualifying.empty:
        return pd.DataFrame(columns=columns)

    client_rows = clients.drop_duplicates("email")
    purchases = pd.DataFrame(
        {
            "email": qualifying["client_email"],
            "purchase_date": qualifying["date"],
            "sale_value": qualifying["sale_value"],
            "purchase_item": qualifying["item"],
            "first_purchase_date": qualifying["client_email"].map(first_purchase["date"]),
            "reason": CONVERSION_REASON,
        }
    )
    records = purchases.merge(client_rows, on="email", how="left")
    return records[columns]
