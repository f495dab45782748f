"""Streamlit demo UI for insights-engine."""

from __future__ import annotations

import tempfile
from datetime import datetime, time
from pathlib import Path
from typing import Any

from insights_engine.adapters import csv_adapter, json_adapter
from insights_engine.pipeline import build_report
from insights_engine.schema import CanonicalAttributeKey, Period

DIMENSIONS = [
    CanonicalAttributeKey.TYPE,
    CanonicalAttributeKey.BEDROOMS,
    CanonicalAttributeKey.NEIGHBORHOOD,
    CanonicalAttributeKey.CITY,
    CanonicalAttributeKey.STATUS,
]


def _adapter_for(file_path: str):
    suffix = Path(file_path).suffix.lower()
    if suffix == ".csv":
        return csv_adapter
    if suffix == ".json":
        return json_adapter
    raise ValueError("Unsupported file type. Please use .csv or .json")


def _save_uploaded(uploaded_file) -> str:
    suffix = Path(uploaded_file.name).suffix.lower()
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as handle:
        handle.write(uploaded_file.getbuffer())
        return handle.name


def _load(events_path: str, inventory_path: str) -> tuple[list, list]:
    events = _adapter_for(events_path).parse(events_path)
    inventory = _adapter_for(inventory_path).parse_inventory(inventory_path)
    return events, inventory


def run_engine(events: list, inventory: list, period: Period, dimension, top_n: int) -> dict[str, Any]:
    """Run the pipeline and return the serialized report payload."""

    report = build_report(events, inventory, period=period, dimension=dimension, top_n=top_n)
    return report.to_dict()


def main() -> None:
    import streamlit as st

    st.set_page_config(page_title="Insights Engine Demo", layout="wide")
    st.title("Insights Engine: Demand vs Supply")

    with st.sidebar:
        st.header("Controls")
        events_file = st.file_uploader("Upload event log", type=["csv", "json"])
        inventory_file = st.file_uploader("Upload inventory", type=["csv", "json"])
        use_demo = st.checkbox("Load demo dataset", value=True)
        dimension = st.selectbox("Dimension", options=DIMENSIONS, format_func=lambda key: key.value)
        top_n = st.number_input("Top N", min_value=1, max_value=20, value=5, step=1)
        start_date = st.date_input("Period start", value=datetime(2025, 1, 1).date())
        end_date = st.date_input("Period end", value=datetime(2025, 1, 31).date())
        run = st.button("Run engine", type="primary")

    if not run:
        st.info("Configure inputs in the sidebar and click **Run engine**.")
        return

    try:
        if use_demo:
            events, inventory = _load("examples/sample_events.csv", "examples/sample_inventory.csv")
        elif events_file is not None and inventory_file is not None:
            events, inventory = _load(_save_uploaded(events_file), _save_uploaded(inventory_file))
        else:
            st.error("Please upload both files or enable 'Load demo dataset'.")
            return

        period = Period(start=datetime.combine(start_date, time.min), end=datetime.combine(end_date, time.max))
        result = run_engine(events, inventory, period, dimension, int(top_n))

        st.subheader("A) KPIs")
        kpis = result["kpis"]
        c1, c2, c3, c4, c5 = st.columns(5)
        c1.metric("Unique visitors", kpis["uniqueVisitors"])
        c2.metric("Leads", kpis["leadsGenerated"])
        c3.metric("Conversion", f"{kpis['conversionRate']:.2f}%")
        c4.metric("Properties viewed", kpis["avgPropertiesViewed"])
        c5.metric("Favourites", kpis["totalFavorites"])

        st.subheader("B) Demand vs Supply")
        dvs = result["demandVsSupply"]
        d1, d2, d3 = st.columns(3)
        d1.write("**Demand**")
        d1.table(dvs["demand"])
        d2.write("**Supply**")
        d2.table(dvs["supply"])
        d3.write("**Gap**")
        d3.table(dvs["gap"])

        st.subheader("C) Opportunities and oversupply")
        o1, o2 = st.columns(2)
        o1.write("**Opportunities (high demand, low stock)**")
        if result["opportunities"]:
            o1.table(result["opportunities"])
        else:
            o1.write("No clear opportunity identified.")
        o2.write("**Oversupply (high stock, low demand)**")
        if result["oversupply"]:
            o2.table(result["oversupply"])
        else:
            o2.write("No oversupply identified.")

        st.subheader("D) Journey and funnel")
        j1, j2 = st.columns(2)
        j1.table([result["journey"]])
        j2.table([result["funnel"]["dropoffRates"]])

        s1, s2 = st.columns(2)
        s1.write("**Lead sources**")
        if result["conversionSources"]:
            s1.table(result["conversionSources"])
        else:
            s1.write("No leads in this period.")
        s2.write("**Most viewed properties**")
        if result["popularProperties"]:
            s2.table(result["popularProperties"])
        else:
            s2.write("No property views in this period.")

        st.subheader("E) Recommendations")
        for rec in result["recommendations"]:
            st.markdown(f"**{rec['title']}** ({rec['label']})")
            st.write(rec["description"])
            if rec["link"]:
                st.caption(f"{rec['action']}: {rec['link']}")

        if result["rejected"]:
            st.warning(f"{result['rejected']} malformed records were skipped.")

    except ValueError as exc:
        st.error(f"Input error: {exc}")


if __name__ == "__main__":
    main()
