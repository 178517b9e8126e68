import asyncio
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from fleet_core.chart_data import build_chart_data, chart_options
from fleet_core.charts import bar_chart
from fleet_core.data import DatasetStore, get_unique_dates, get_unique_zones, prepare_context
from fleet_core.logging_setup import configure_logging
from fleet_core.metrics_debug import compute_debug
from fleet_core.metrics_zones import compute_zone_analysis
from fleet_core.sheets import CHART_TITLES, ISSUE_SHEETS, LESS_THAN_3_TRIPS, SPHERE_WORKSHOP_EXIT, get_label_field, get_value_field

configure_logging()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: Dict[str, Any]) -> str:
    date_range = filters.get("dateRange") or {}
    if filters.get("quickDate"):
        date_chip = f"Date: {filters['quickDate']}"
    elif date_range.get("from") or date_range.get("to"):
        date_chip = f"Dates: {date_range.get('from') or '…'} to {date_range.get('to') or '…'}"
    else:
        date_chip = "Dates: All"
    zone_chip = f"Zone: {filters['selectedZone']}" if filters.get("selectedZone") else "Zone: All"
    trip_chip = f"Trips: {filters.get('tripCountFilter', 'all')}"
    return "".join(f"<span class='chip'>{txt}</span>" for txt in [date_chip, zone_chip, trip_chip])


@st.cache_resource
def get_store() -> DatasetStore:
    return DatasetStore()


def records_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    flat = [{k: v for k, v in row.items() if not isinstance(v, (dict, list))} for row in records]
    return pd.DataFrame(flat)


# ---------- UI setup ----------
st.set_page_config(page_title="Fleet Operations Dashboard", layout="wide")
inject_base_styles()
st.title("Fleet Operations Dashboard")

store = get_store()
if store.is_stale():
    asyncio.run(store.refresh())
if store.all_failed:
    st.error("No sheet could be loaded. Check network access to the spreadsheet.")
    st.stop()

with st.sidebar:
    st.markdown("### Navigate")
    page = st.radio("Navigate", ["Sheets", "Zone Risk", "Data Quality / Debug"], index=0)
    st.markdown("---")
    st.markdown("### Filters")
    all_dates = get_unique_dates(store.dataset)
    quick_date = st.selectbox("Quick date", options=[""] + all_dates[::-1], format_func=lambda d: d or "Any")
    use_range = st.checkbox("Filter by date range", value=False, disabled=bool(quick_date))
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    if use_range and not quick_date:
        date_from = st.date_input("From", value=None)
        date_to = st.date_input("To", value=None)
    zones = get_unique_zones(store.dataset)
    selected_zone = st.selectbox("Zone", options=[""] + zones, format_func=lambda z: f"Zone {z}" if z else "All zones")
    trip_count_filter = st.selectbox("Trip count", options=["all", "0", "1", "2"], index=0)
    st.markdown("---")
    if st.button("Refresh data"):
        asyncio.run(store.refresh())
        st.rerun()
    if store.refreshed_at:
        st.caption(f"Last refreshed {store.refreshed_at:%Y-%m-%d %H:%M:%S} UTC")

filters = {
    "dateRange": {
        "from": date_from.isoformat() if date_from else None,
        "to": date_to.isoformat() if date_to else None,
    },
    "quickDate": quick_date or None,
    "selectedZone": selected_zone or None,
    "tripCountFilter": trip_count_filter,
}
ctx = prepare_context(filters, store.dataset)
st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)


def render_sheet(sheet_name: str):
    records = ctx["filtered"].get(sheet_name, [])
    chart = build_chart_data(
        records,
        get_value_field(sheet_name),
        get_label_field(sheet_name),
        sheet_name,
        ctx["filters"].trip_count_filter,
    )
    options = chart_options(sheet_name)
    with card(CHART_TITLES.get(sheet_name, sheet_name)):
        if not chart["labels"]:
            st.info("No data for the current filters.")
            return
        st.altair_chart(bar_chart(chart, options), use_container_width=True)
        dataset = chart["datasets"][0]
        if sheet_name in ISSUE_SHEETS or sheet_name == SPHERE_WORKSHOP_EXIT:
            label_name = options["label_name"]
            for label, details in zip(chart["labels"], dataset.get("details") or []):
                if not details:
                    continue
                with st.expander(f"{label_name} {label}: {len(details)} entries"):
                    st.dataframe(pd.DataFrame(details), hide_index=True)
        if sheet_name == LESS_THAN_3_TRIPS:
            st.dataframe(records_frame(records), hide_index=True)
        st.download_button(
            "Export CSV",
            data=records_frame(records).to_csv(index=False).encode("utf-8"),
            file_name=f"{sheet_name}.csv",
            mime="text/csv",
            key=f"export-{sheet_name}",
        )


def render_sheets_page():
    for sheet_name in store.sheet_names:
        render_sheet(sheet_name)


def render_zone_risk_page():
    analysis = compute_zone_analysis(ctx["filters"], ctx)
    summary = analysis["summary"]
    cols = st.columns(4)
    cols[0].metric("Zones", summary["totalZones"])
    cols[1].metric("Critical", summary["criticalZones"])
    cols[2].metric("High risk", summary["highRiskZones"])
    cols[3].metric("Recommendations", summary["totalRecommendations"])
    with card("Critical zones"):
        if not analysis["criticalZones"]:
            st.info("No critical zones for the current filters.")
        for zone in analysis["criticalZones"]:
            with st.expander(f"Zone {zone['zone']}: risk {zone['riskScore']} ({zone['priority']})"):
                st.write(zone["criticalReasons"])
                if zone["recommendations"]:
                    st.dataframe(pd.DataFrame(zone["recommendations"]), hide_index=True)
    with card("All zones"):
        rows = [
            {"Zone": z["zone"], "Risk score": z["riskScore"], "Priority": z["priority"], "Issues": z["totalIssues"]}
            for z in analysis["allZones"]
        ]
        st.dataframe(pd.DataFrame(rows), hide_index=True)


def render_debug_page():
    payload = compute_debug(ctx["filters"], ctx, store)
    with card("Data Quality"):
        st.markdown("**Row counts**")
        st.write(payload["row_counts"])
        st.markdown("**Per-sheet load details**")
        st.dataframe(pd.DataFrame.from_dict(payload["sheets"], orient="index"))
        if payload["errors"]:
            st.markdown("**Errors**")
            st.write(payload["errors"])
        if payload["date_coverage"]:
            st.markdown("**Date coverage**")
            st.dataframe(pd.DataFrame(payload["date_coverage"]), hide_index=True)


if page == "Sheets":
    render_sheets_page()
elif page == "Zone Risk":
    render_zone_risk_page()
else:
    render_debug_page()
