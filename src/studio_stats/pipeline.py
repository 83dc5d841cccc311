# src/studio_stats/pipeline.py
"""
End-to-end processing of the studio exports.

normalize → attribute teachers → drop friends/family/staff → build cohorts →
evaluate retention and conversion per cohort → roll up per location.

Outputs (command line):
  • teacher_metrics.csv                  (one row per cohort plus location roll-ups)
  • <audit>_records.csv                  (included, excluded, new, converted, retained)
"""

from __future__ import annotations

import argparse
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

import pandas as pd

from . import config
from .attribution import attach_teachers
from .cohorts import (
    add_periods,
    booking_teachers,
    build_cohorts,
    distinct_in_order,
    split_exclusions,
)
from .data_prep import (
    ensure_directories,
    load_raw_data,
    to_bookings_frame,
    to_new_clients_frame,
    to_sales_frame,
)
from .dates import sort_periods
from .metrics import build_cohort_metrics, group_bookings, metrics_to_frame, rollup_by_location
from .models import TeacherMetrics

logger = logging.getLogger(__name__)

Rows = pd.DataFrame | Sequence[Mapping[str, object]]

INCLUDED_REASON = "Matched teacher, location, and period criteria"
NEW_CLIENT_REASON = "First time visitor"

AUDIT_NAMES = (
    "included_records",
    "excluded_records",
    "new_client_records",
    "converted_client_records",
    "retained_client_records",
)


@dataclass(frozen=True)
class ProcessingProgress:
    progress: int  # 0..100
    current_step: str


class ProcessingCancelled(RuntimeError):
    """Raised when the cancel event is set while cohorts are being evaluated."""


@dataclass(frozen=True)
class ProcessingResult:
    processed_data: list[TeacherMetrics]
    locations: list[str]
    teachers: list[str]
    periods: list[str]
    included_records: pd.DataFrame
    excluded_records: pd.DataFrame
    new_client_records: pd.DataFrame
    converted_client_records: pd.DataFrame
    retained_client_records: pd.DataFrame


def process_data(
    new_clients: Rows,
    bookings: Rows,
    sales: Rows | None = None,
    update_progress: Callable[[ProcessingProgress], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> ProcessingResult:
    """
    Compute per-cohort and per-location metrics from the three exports.

    Malformed values never raise; they fall back to defaults and show up in
    the audit tables instead. Inputs that are not tables at all raise
    ``TypeError``. ``sales`` may be ``None`` when no payments export exists.
    """

    def report(progress: int, step: str) -> None:
        if update_progress is not None:
            update_progress(ProcessingProgress(progress=progress, current_step=step))

    report(5, "Cleaning and validating data...")
    new_frame = to_new_clients_frame(new_clients)
    booking_frame = to_bookings_frame(bookings)
    sale_frame = to_sales_frame(sales)
    logger.info(
        "Normalized %d new clients, %d bookings, %d sales",
        len(new_frame),
        len(booking_frame),
        len(sale_frame),
    )
    if sale_frame.empty:
        logger.warning("No sales data available; conversions will all be zero")

    report(20, "Matching records and extracting teacher data...")
    enriched = add_periods(attach_teachers(new_frame, booking_frame), "first_visit_at")

    report(40, "Calculating metrics by location, teacher, and period...")
    locations = distinct_in_order(enriched["first_visit_location"])
    teachers = booking_teachers(booking_frame)
    periods = distinct_in_order(enriched["period"])
    eligible, excluded = split_exclusions(enriched)
    cohorts = build_cohorts(eligible, teachers, locations, periods)

    report(60, "Calculating client acquisition metrics...")
    dated_bookings = add_periods(booking_frame, "class_date")
    booking_groups = group_bookings(dated_bookings)
    no_bookings = dated_bookings.iloc[0:0]

    report(80, "Calculating retention and revenue metrics...")
    records: list[TeacherMetrics] = []
    audits: dict[str, list[pd.DataFrame]] = {name: [] for name in AUDIT_NAMES}
    for cohort in cohorts:
        if cancel_event is not None and cancel_event.is_set():
            raise ProcessingCancelled(
                f"Processing cancelled after {len(records)} of {len(cohorts)} cohorts"
            )
        logger.debug(
            "Processing %s at %s for %s: %d new clients",
            cohort.teacher,
            cohort.location,
            cohort.period,
            cohort.size,
        )
        key = (cohort.teacher, cohort.location, cohort.period)
        evaluation = build_cohort_metrics(
            cohort, booking_frame, booking_groups.get(key, no_bookings), sale_frame
        )
        records.append(evaluation.metrics)
        audits["included_records"].append(cohort.clients.assign(reason=INCLUDED_REASON))
        audits["new_client_records"].append(cohort.clients.assign(reason=NEW_CLIENT_REASON))
        audits["converted_client_records"].append(evaluation.conversion.records)
        audits["retained_client_records"].append(evaluation.retention.records)

    processed = records + rollup_by_location(records)
    client_columns = list(enriched.columns) + ["channel", "reason"]

    report(100, "Processing complete!")
    logger.info("Produced %d metric records from %d cohorts", len(processed), len(cohorts))
    return ProcessingResult(
        processed_data=processed,
        locations=locations,
        teachers=sorted(teachers),
        periods=sort_periods(periods),
        included_records=_stack(audits["included_records"], client_columns),
        excluded_records=excluded,
        new_client_records=_stack(audits["new_client_records"], client_columns),
        converted_client_records=_stack(audits["converted_client_records"], []),
        retained_client_records=_stack(audits["retained_client_records"], []),
    )


def write_outputs(result: ProcessingResult, out_dir: Path | None = None) -> list[Path]:
    """Write the metrics table and the audit tables as CSV files."""
    target = Path(out_dir) if out_dir else Path(config.PROCESSED_DIR)
    target.mkdir(parents=True, exist_ok=True)

    metrics_path = target / "teacher_metrics.csv"
    metrics_to_frame(result.processed_data).to_csv(metrics_path, index=False)
    written = [metrics_path]
    for name in AUDIT_NAMES:
        path = target / f"{name}.csv"
        getattr(result, name).to_csv(path, index=False)
        written.append(path)
    return written


def _stack(frames: list[pd.DataFrame], columns: list[str]) -> pd.DataFrame:
    non_empty = [frame for frame in frames if not frame.empty]
    if non_empty:
        return pd.concat(non_empty, ignore_index=True)
    if frames:
        return frames[0].iloc[0:0].reset_index(drop=True)
    return pd.DataFrame(columns=columns)


def _print_progress(progress: ProcessingProgress) -> None:
    print(f"[{progress.progress:>3}%] {progress.current_step}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Compute teacher and studio performance metrics.")
    parser.add_argument(
        "--raw_dir",
        type=Path,
        default=None,
        help="Directory holding the new / bookings / payments CSV exports.",
    )
    parser.add_argument(
        "--out_dir",
        type=Path,
        default=None,
        help="Where to write the metric and audit CSVs. Defaults to data/processed.",
    )
    args = parser.parse_args(argv)

    if args.out_dir is None:
        ensure_directories()
    raw = load_raw_data(args.raw_dir)
    result = process_data(raw.new_clients, raw.bookings, raw.sales, update_progress=_print_progress)
    for path in write_outputs(result, args.out_dir):
        print(f"Wrote: {path}")
    print(
        f"Teachers: {len(result.teachers)}; locations: {len(result.locations)}; "
        f"periods: {len(result.periods)}; excluded records: {len(result.excluded_records)}"
    )


if __name__ == "__main__":
    main()
