from __future__ import annotations

from typing import Callable

import pytest

Row = dict[str, object]


@pytest.fixture
def make_new_client() -> Callable[..., Row]:
    def _make(
        email: str = "a@x.com",
        first_visit: str = "Trial Class",
        first_visit_at: str = "2024-01-05",
        location: str = "Loc1",
        membership: str = "",
        first_name: str = "Ann",
        last_name: str = "Lee",
    ) -> Row:
        return {
            "First name": first_name,
            "Last name": last_name,
            "Email": email,
            "Phone number": "",
            "Payment method": "Card",
            "Membership used": membership,
            "First visit at": first_visit_at,
            "First visit": first_visit,
            "First visit location": location,
            "Visit type": "",
            "Home location": location,
        }

    return _make


@pytest.fixture
def make_booking() -> Callable[..., Row]:
    def _make(
        email: str = "a@x.com",
        class_name: str = "Trial Class",
        class_date: str = "2024-01-05",
        location: str = "Loc1",
        teacher: str = "Jane",
        cancelled: str = "NO",
        late_cancelled: str = "NO",
        no_show: str = "NO",
    ) -> Row:
        return {
            "Sale Date": class_date,
            "Class Name": class_name,
            "Class Date": class_date,
            "Location": location,
            "Teacher": teacher,
            "Customer Email": email,
            "Payment Method": "Card",
            "Membership used": "",
            "Sale Value": "0",
            "Sales tax": "0",
            "Cancelled": cancelled,
            "Late Cancelled": late_cancelled,
            "No Show": no_show,
            "Sold by": "",
            "Refunded": "NO",
            "Home location": location,
        }

    return _make


@pytest.fixture
def make_sale() -> Callable[..., Row]:
    def _make(
        email: str = "a@x.com",
        date: str = "2024-01-20",
        value: object = "100",
        category: str = "Membership",
        item: str = "10-pack",
        refunded: str = "NO",
        paying_email: str = "",
    ) -> Row:
        return {
            "Category": category,
            "Item": item,
            "Date": date,
            "Sale value": value,
            "Tax": "0",
            "Refunded": refunded,
            "Payment method": "Card",
            "Payment status": "Paid",
            "Sold by": "",
            "Paying Customer email": paying_email,
            "Paying Customer name": "",
            "Customer email": email,
            "Customer name": "Ann Lee",
            "Location": "Loc1",
            "Note": "",
        }

    return _make
