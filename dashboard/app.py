"""Streamlit dashboard for hotel occupancy and food & beverage sales."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
import requests
import streamlit as st

# ==========================================
# Configuration & Constants
# ==========================================
# Point this to your local FastAPI server
API_BASE_URL = "http://127.0.0.1:8000"

st.set_page_config(
    page_title="Hotel Analytics",
    page_icon="🏨",
    layout="wide",
)


# ==========================================
# API Helper Functions
# ==========================================
def fetch_report(path: str, params: Dict[str, str]) -> Optional[Any]:
    """GET a report endpoint and surface failures in the page."""
    try:
        response = requests.get(f"{API_BASE_URL}{path}", params=params, timeout=10)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.RequestException as e:
        st.error(f"Backend request failed: {e}")
        return None


def occupancy_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    frame = pd.DataFrame(rows)
    if frame.empty:
        return frame
    frame["date"] = pd.to_datetime(frame["date"])
    return frame.set_index("date").rename(
        columns={
            "standard_rate": "Standard",
            "deluxe_rate": "Deluxe",
            "suite_rate": "Suite",
            "average_rate": "All rooms",
        }
    )


def date_range_inputs(key: str, default_start: datetime.date, default_end: datetime.date):
    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("Start date", default_start, key=f"{key}-start")
    with col2:
        end = st.date_input("End date", default_end, key=f"{key}-end")
    return start, end


# ==========================================
# UI Page Functions
# ==========================================
def render_sales_page() -> None:
    st.header("🍽️ Food & Beverage Sales")
    today = datetime.date.today()
    start, end = date_range_inputs("sales", today - datetime.timedelta(days=13), today)

    if st.button("Load Sales", type="primary"):
        result = fetch_report("/sales", {"start": str(start), "end": str(end)})
        if result:
            st.metric("Average daily sales (trading days)", f"{result['average_sales']:,.2f}")
            frame = pd.DataFrame(result["rows"])
            if not frame.empty:
                st.bar_chart(frame.set_index("date")["total_sales"])
                st.dataframe(frame, use_container_width=True)


def render_occupancy_page(title: str, path: str, default_offset_days: int) -> None:
    st.header(title)
    today = datetime.date.today()
    if default_offset_days < 0:
        defaults = (today + datetime.timedelta(days=default_offset_days), today)
    else:
        defaults = (today, today + datetime.timedelta(days=default_offset_days))
    start, end = date_range_inputs(path, *defaults)

    if st.button("Load Occupancy", type="primary"):
        result = fetch_report(path, {"start": str(start), "end": str(end)})
        if result:
            st.metric("Period average", f"{result['average_rate']:.2f}%")
            frame = occupancy_frame(result["rows"])
            if not frame.empty:
                st.line_chart(frame)
                st.dataframe(frame.round(2), use_container_width=True)


def render_current_page() -> None:
    st.header("🛏️ In-House Today")
    if st.button("Refresh", type="primary"):
        rows = fetch_report("/occupancy/current", {})
        if rows is not None:
            if rows:
                st.dataframe(pd.DataFrame(rows), use_container_width=True)
            else:
                st.info("No confirmed stays cover today.")

    st.subheader("Weekday prediction")
    target_date = st.date_input("Target date", datetime.date.today() + datetime.timedelta(days=7))
    if st.button("Predict"):
        rows = fetch_report("/occupancy/prediction", {"target_date": str(target_date)})
        if rows:
            st.dataframe(pd.DataFrame(rows), use_container_width=True)


# ==========================================
# Main App Router
# ==========================================
def main() -> None:
    st.sidebar.title("Hotel Analytics")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Report",
        ["Sales", "Past Occupancy", "Future Occupancy", "Current Occupancy"],
    )

    if page == "Sales":
        render_sales_page()
    elif page == "Past Occupancy":
        render_occupancy_page("📈 Past Occupancy", "/occupancy/past", -13)
    elif page == "Future Occupancy":
        render_occupancy_page("🔭 Future Occupancy", "/occupancy/future", 30)
    elif page == "Current Occupancy":
        render_current_page()


if __name__ == "__main__":
    main()
