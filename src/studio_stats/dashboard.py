# src/studio_stats/dashboard.py
"""
Streamlit dashboard for teacher and studio performance metrics.
"""

from __future__ import annotations

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns
import streamlit as st

from studio_stats import config
from studio_stats.data_prep import categorize_files
from studio_stats.filters import filter_metrics
from studio_stats.metrics import MONTHLY_METRICS, metrics_to_frame, monthly_pivot
from studio_stats.pipeline import AUDIT_NAMES, ProcessingProgress, process_data


def run_dashboard_app() -> None:
    st.set_page_config(page_title="Studio Performance", layout="wide")

    st.title("Studio Performance Dashboard")
    st.markdown("New-client acquisition, retention and conversion by teacher, studio and month.")

    # --- upload exports ---
    uploads = st.file_uploader(
        "Upload the new-client, bookings and payments CSV exports",
        type="csv",
        accept_multiple_files=True,
    )
    if not uploads:
        st.info("File names must contain 'new', 'bookings' and (optionally) 'payments'.")
        st.stop()

    by_name = {upload.name: upload for upload in uploads}
    files = categorize_files(list(by_name))
    if files["new"] is None:
        st.error("Missing new-client file. Upload a file with 'new' in the name.")
        st.stop()
    if files["bookings"] is None:
        st.error("Missing bookings file. Upload a file with 'bookings' in the name.")
        st.stop()

    def read(name: object) -> pd.DataFrame:
        return pd.read_csv(by_name[str(name)], dtype=str, keep_default_na=False)

    bar = st.progress(0, text="Starting processing...")

    def show_progress(progress: ProcessingProgress) -> None:
        bar.progress(progress.progress, text=progress.current_step)

    result = process_data(
        read(files["new"]),
        read(files["bookings"]),
        read(files["payments"]) if files["payments"] is not None else None,
        update_progress=show_progress,
    )

    # --- filters ---
    view = st.radio("View", ["Teachers", "Studios"], horizontal=True)
    col1, col2, col3 = st.columns(3)
    periods = col1.multiselect("Period", result.periods)
    teachers = col2.multiselect("Teacher", result.teachers)
    locations = col3.multiselect("Location", result.locations)

    selected = filter_metrics(result.processed_data, periods, teachers, locations)
    studio_rows = view == "Studios"
    records = [r for r in selected if (r.teacher_name == config.ALL_TEACHERS) == studio_rows]
    if not records:
        st.warning("No results match the current filters.")
        st.stop()

    df = metrics_to_frame(records)

    # --- summary metrics ---
    new_clients = int(df["new_clients"].sum())
    retained = int(df["retained_clients"].sum())
    converted = int(df["converted_clients"].sum())
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("New Clients", new_clients)
    m2.metric("Retention", f"{retained / new_clients * 100:.1f}%" if new_clients else "0.0%")
    m3.metric("Conversion", f"{converted / new_clients * 100:.1f}%" if new_clients else "0.0%")
    m4.metric("Revenue", f"{df['total_revenue'].sum():,.0f}")

    st.subheader("Results")
    st.dataframe(df)

    # --- teacher by month ---
    st.subheader("Monthly Metrics")
    metric = st.selectbox(
        "Metric", MONTHLY_METRICS, format_func=lambda name: name.replace("_", " ").title()
    )
    monthly = monthly_pivot(selected, metric)
    if monthly.empty:
        st.caption("No teacher records for the current selection.")
    else:
        st.dataframe(monthly)

    # --- clients by source ---
    st.subheader("New Clients by Source")
    sources = pd.DataFrame(
        [{"source": s.source, "count": s.count} for r in records for s in r.clients_by_source]
    )
    if not sources.empty:
        fig, ax = plt.subplots(figsize=(8, 4))
        sns.barplot(
            data=sources.groupby("source", sort=False, as_index=False)["count"].sum(),
            x="source",
            y="count",
            color="#3498db",
            ax=ax,
        )
        ax.set_xlabel("Source")
        ax.set_ylabel("New Clients")
        st.pyplot(fig)

    # --- weekly revenue ---
    st.subheader("Revenue by Week")
    weekly = pd.DataFrame(
        [{"week": w.week, "revenue": w.revenue} for r in records for w in r.revenue_by_week]
    )
    if weekly.empty:
        st.caption("No qualifying sales for the current selection.")
    else:
        weekly = weekly.groupby("week", as_index=False)["revenue"].sum()
        weekly["week"] = pd.to_datetime(weekly["week"])
        fig2, ax2 = plt.subplots(figsize=(8, 4))
        sns.lineplot(data=weekly, x="week", y="revenue", marker="o", ax=ax2)
        ax2.set_xlabel("Week starting")
        ax2.set_ylabel("Revenue")
        st.pyplot(fig2)

    # --- audit tables ---
    st.subheader("Processing Details")
    for name in AUDIT_NAMES:
        table = getattr(result, name)
        with st.expander(f"{name.replace('_', ' ').title()} ({len(table)})"):
            st.dataframe(table)
