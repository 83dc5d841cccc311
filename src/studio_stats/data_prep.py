# src/studio_stats/data_prep.py
"""
Data ingestion helpers that turn raw studio exports (new clients, bookings,
sales/payments) into normalized tables with one canonical column set each.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import pandas as pd

from . import config
from .dates import format_date_string

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawData:
    """Container for the three raw exports; sales are optional."""

    new_clients: pd.DataFrame
    bookings: pd.DataFrame
    sales: pd.DataFrame | None


NEW_CLIENT_COLUMNS: dict[str, Iterable[str]] = {
    "email": ("email", "customer_email"),
    "first_name": ("first_name", "firstname", "first"),
    "last_name": ("last_name", "lastname", "last"),
    "phone": ("phone", "phone_number"),
    "payment_method": ("payment_method",),
    "membership_used": ("membership_used", "membership"),
    "first_visit": ("first_visit", "first_visit_class"),
    "first_visit_at": ("first_visit_at", "first_visit_date"),
    "first_visit_location": ("first_visit_location", "location"),
    "visit_type": ("visit_type",),
    "home_location": ("home_location",),
}

BOOKING_COLUMNS: dict[str, Iterable[str]] = {
    "sale_date": ("sale_date",),
    "class_name": ("class_name", "class"),
    "class_date": ("class_date",),
    "location": ("location",),
    "teacher": ("teacher", "instructor"),
    "customer_email": ("customer_email", "email"),
    "payment_method": ("payment_method",),
    "membership_used": ("membership_used", "membership"),
    "sale_value": ("sale_value",),
    "sales_tax": ("sales_tax", "tax"),
    "cancelled": ("cancelled", "canceled"),
    "late_cancelled": ("late_cancelled", "late_canceled"),
    "no_show": ("no_show", "noshow"),
    "sold_by": ("sold_by",),
    "refunded": ("refunded",),
    "home_location": ("home_location",),
}

SALE_COLUMNS: dict[str, Iterable[str]] = {
    "category": ("category",),
    "item": ("item",),
    "date": ("date", "sale_date"),
    "sale_value": ("sale_value",),
    "tax": ("tax", "sales_tax"),
    "refunded": ("refunded",),
    "payment_method": ("payment_method",),
    "payment_status": ("payment_status",),
    "sold_by": ("sold_by",),
    "paying_customer_email": ("paying_customer_email",),
    "paying_customer_name": ("paying_customer_name",),
    "customer_email": ("customer_email", "email"),
    "customer_name": ("customer_name",),
    "location": ("location",),
    "note": ("note",),
}

REQUIRED_NEW_CLIENT_COLUMNS = ("email", "first_visit", "first_visit_at", "first_visit_location")
REQUIRED_BOOKING_COLUMNS = ("customer_email", "class_name", "class_date", "location", "teacher")
REQUIRED_SALE_COLUMNS = ("customer_email", "date", "sale_value")


def to_new_clients_frame(rows: pd.DataFrame | Sequence[Mapping[str, object]]) -> pd.DataFrame:
    df = _adapt(
        rows, NEW_CLIENT_COLUMNS, "new clients", required=REQUIRED_NEW_CLIENT_COLUMNS
    )
    df["first_visit_at"] = df["first_visit_at"].map(format_date_string)
    df["first_visit"] = clean_label(df["first_visit"])
    return df


def to_bookings_frame(rows: pd.DataFrame | Sequence[Mapping[str, object]]) -> pd.DataFrame:
    df = _adapt(
        rows,
        BOOKING_COLUMNS,
        "bookings",
        numeric=("sale_value", "sales_tax"),
        required=REQUIRED_BOOKING_COLUMNS,
    )
    df["class_date"] = df["class_date"].map(format_date_string)
    df["sale_date"] = df["sale_date"].map(format_date_string)
    df["class_name"] = clean_label(df["class_name"])
    for flag in ("cancelled", "late_cancelled", "no_show", "refunded"):
        df[flag] = df[flag].str.upper()
    return df


def to_sales_frame(rows: pd.DataFrame | Sequence[Mapping[str, object]] | None) -> pd.DataFrame:
    if rows is None:
        rows = []
    df = _adapt(
        rows, SALE_COLUMNS, "sales", numeric=("sale_value", "tax"), required=REQUIRED_SALE_COLUMNS
    )
    df["date"] = df["date"].map(format_date_string)
    df["refunded"] = df["refunded"].str.upper()
    return df


def clean_label(values: pd.Series) -> pd.Series:
    """Strip the ``Class - `` boilerplate prefix from class labels."""
    cleaned = values.str.replace(config.LABEL_PREFIX_REGEX, "", regex=True, flags=re.IGNORECASE)
    return cleaned.str.strip()


def parse_money(values: pd.Series) -> pd.Series:
    """Coerce currency-like strings to floats, defaulting to 0."""
    text = values.fillna("").astype(str).str.replace(r"[^0-9.\-]+", "", regex=True)
    return pd.to_numeric(text, errors="coerce").fillna(0.0).astype(float)


def categorize_files(paths: Iterable[Path | str]) -> dict[str, object]:
    """
    Sort export files by name into new / bookings / payments buckets.

    The first pattern that matches wins, so a file named ``new_bookings.csv``
    is treated as the new-client export. Later files of the same kind replace
    earlier ones.
    """
    categorized: dict[str, object] = {
        "new": None,
        "bookings": None,
        "payments": None,
        "unknown": [],
    }
    for path in paths:
        name = Path(path).name.lower()
        for kind, pattern in config.FILE_PATTERNS.items():
            if re.search(pattern, name, flags=re.IGNORECASE):
                categorized[kind] = path
                break
        else:
            categorized["unknown"].append(path)  # type: ignore[union-attr]
    return categorized


def load_raw_data(raw_dir: Path | None = None) -> RawData:
    """
    Load the new-client and bookings exports (mandatory) and sales (optional).

    Parameters
    ----------
    raw_dir:
        Optional override for the raw directory. Defaults to config.RAW_DIR.
    """

    base_dir = Path(raw_dir) if raw_dir else Path(config.RAW_DIR)
    if not base_dir.exists():
        raise FileNotFoundError(f"Raw data directory not found: {base_dir}")

    files = categorize_files(sorted(base_dir.glob("*.csv")))
    if files["new"] is None:
        raise FileNotFoundError(f"No new-client export (file name containing 'new') in {base_dir}")
    if files["bookings"] is None:
        raise FileNotFoundError(
            f"No bookings export (file name containing 'bookings') in {base_dir}"
        )

    new_clients = _read_csv(files["new"])
    bookings = _read_csv(files["bookings"])
    sales = _read_csv(files["payments"]) if files["payments"] is not None else None
    for path in files["unknown"]:  # type: ignore[union-attr]
        logger.warning("Ignoring unrecognised export %s", path)

    return RawData(new_clients=new_clients, bookings=bookings, sales=sales)


def ensure_directories() -> None:
    """Create the output directory if it does not already exist."""

    Path(config.PROCESSED_DIR).mkdir(parents=True, exist_ok=True)


# ---------------------------------------------------------------------------
# Internal helpers


def _to_snake_case(name: str) -> str:
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", str(name).strip())
    snake = (
        spaced
        .replace("-", "_")
        .replace(" ", "_")
        .replace("/", "_")
        .lower()
    )
    return re.sub(r"_+", "_", snake)


def _read_csv(path: object) -> pd.DataFrame:
    df = pd.read_csv(Path(str(path)), dtype=str, keep_default_na=False)
    logger.info("Loaded %s (%d rows)", path, len(df))
    return df


def _as_frame(rows: object, label: str) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        return rows.copy()
    if isinstance(rows, (str, bytes)) or not isinstance(rows, Sequence):
        raise TypeError(
            f"Expected {label} as a DataFrame or a sequence of row mappings, "
            f"got {type(rows).__name__}"
        )
    bad = next((row for row in rows if not isinstance(row, Mapping)), None)
    if bad is not None:
        raise TypeError(f"Every {label} row must be a mapping, got {type(bad).__name__}")
    return pd.DataFrame.from_records([dict(row) for row in rows])


def _coalesce_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    # rows built from mixed header spellings ("Customer Email" / "customer email")
    merged: dict[str, pd.Series] = {}
    for position, name in enumerate(df.columns):
        column = df.iloc[:, position]
        if name in merged:
            merged[name] = merged[name].replace("", pd.NA).combine_first(column)
        else:
            merged[name] = column
    return pd.DataFrame(merged, index=df.index)


def _adapt(
    rows: object,
    columns: Mapping[str, Iterable[str]],
    label: str,
    numeric: Iterable[str] = (),
    required: Iterable[str] = (),
) -> pd.DataFrame:
    df = _as_frame(rows, label)
    df.columns = pd.Index([_to_snake_case(col) for col in df.columns])
    if df.columns.duplicated().any():
        df = _coalesce_duplicate_columns(df)

    for target, candidates in columns.items():
        if target in df.columns:
            continue
        for candidate in candidates:
            if candidate in df.columns:
                df = df.rename(columns={candidate: target})
                break

    missing = [col for col in required if col not in df.columns]
    if missing and not df.empty:
        logger.warning("%s rows have no %s column; filling with blanks", label, ", ".join(missing))

    numeric = tuple(numeric)
    for col in columns:
        if col in numeric:
            raw = df[col] if col in df.columns else pd.Series(0.0, index=df.index)
            df[col] = parse_money(raw)
        elif col in df.columns:
            df[col] = df[col].fillna("").astype(str).str.strip()
        else:
            df[col] = pd.Series("", index=df.index, dtype="object")

    logger.debug("Adapted %d %s rows", len(df), label)
    return df[list(columns)].reset_index(drop=True)
