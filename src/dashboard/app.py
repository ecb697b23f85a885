"""Streamlit dashboard for trip bookings, distances and locations."""

import sys
from pathlib import Path

# Ensure project root is on the Python path
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import pandas as pd
import plotly.express as px
import streamlit as st

from src.measures.measures import ResultStatus, vehicle_type_summary
from src.measures.registry import (
    AXIS_LABELS,
    default_index,
    display_names,
    dynamic_title,
    resolve,
)
from src.model.snapshot import ReportSnapshot, SnapshotStore
from src.query.evaluate import Filters, ReportQuery, apply_filters

st.set_page_config(
    page_title="Trip Bookings Dashboard",
    page_icon=":taxi:",
    layout="wide",
)


@st.cache_resource(ttl=600)
def load_query() -> ReportQuery:
    """Load the star schema from the warehouse into a report snapshot."""
    from src.database.connection import engine
    from src.database.warehouse import read_tables

    store = SnapshotStore()
    store.refresh(lambda: read_tables(engine))
    return ReportQuery(store)


def sidebar_filters(snapshot: ReportSnapshot) -> Filters:
    st.sidebar.header("Filters")

    first = snapshot.calendar["date"].min().date()
    last = snapshot.calendar["date"].max().date()
    date_range = st.sidebar.date_input(
        "Pickup date", value=(first, last), min_value=first, max_value=last, key="date_filter"
    )
    if not isinstance(date_range, (tuple, list)) or len(date_range) != 2:
        date_range = (first, last)

    cities = sorted(snapshot.locations["city"].unique())
    city = st.sidebar.selectbox("City", ["All"] + cities, key="city_filter")
    vehicles = sorted(snapshot.trips["vehicle_type"].unique())
    vehicle = st.sidebar.selectbox("Vehicle Type", ["All"] + vehicles, key="vehicle_filter")
    payments = sorted(snapshot.trips["payment_type"].unique())
    payment = st.sidebar.selectbox("Payment Type", ["All"] + payments, key="payment_filter")

    return Filters(
        date_range=tuple(date_range),
        city=None if city == "All" else city,
        vehicle_type=None if vehicle == "All" else vehicle,
        payment_type=None if payment == "All" else payment,
    )


def render_cards(query: ReportQuery, filters: Filters) -> None:
    cards = [
        ("Total Bookings", "total_bookings"),
        ("Total Booking Value", "total_booking_value"),
        ("Avg Booking Value", "avg_booking_value"),
        ("Total Trip Distance", "total_trip_distance"),
        ("Avg Trip Distance", "avg_trip_distance"),
        ("Avg Trip Time", "avg_trip_time"),
    ]
    for col, (label, measure) in zip(st.columns(len(cards)), cards):
        with col:
            st.metric(label, query.evaluate(measure, filters).formatted)


def render_locations(query: ReportQuery, filters: Filters) -> None:
    col1, col2, col3 = st.columns(3)
    with col1:
        pickup = query.evaluate("most_frequent_pickup_point", filters)
        st.metric("Most Frequent Pickup Point", pickup.formatted)
    with col2:
        dropoff = query.evaluate("most_frequent_dropoff_point", filters)
        st.metric("Most Frequent Drop-off Point", dropoff.formatted)
    with col3:
        farthest = query.evaluate("farthest_trip", filters)
        if farthest.status is ResultStatus.AMBIGUOUS:
            st.warning(farthest.formatted)
            st.dataframe(pd.DataFrame(farthest.value), use_container_width=True)
        else:
            st.markdown(f"**Farthest Trip**  \n{farthest.formatted}")


def main() -> None:
    st.title("Trip Bookings Dashboard")

    with st.spinner("Loading trips from database..."):
        try:
            query = load_query()
        except Exception as e:
            st.error(f"Failed to load trip data: {e}")
            st.info("Make sure the pipeline has been run and the database is available.")
            return

    snapshot = query.store.current()
    if snapshot.trips.empty:
        st.warning("No trips found. Run the pipeline first.")
        return

    filters = sidebar_filters(snapshot)

    st.sidebar.divider()
    metric = st.sidebar.radio(
        "Dynamic Measure", display_names(), index=default_index(), key="metric_switch"
    )
    axis = st.sidebar.selectbox(
        "Group by", list(AXIS_LABELS), format_func=AXIS_LABELS.get, key="axis_filter"
    )

    render_cards(query, filters)
    render_locations(query, filters)

    # --- Dynamic measure chart and vehicle grid ---
    @st.fragment
    def render_visualizations():
        definition = resolve(metric)
        st.subheader(dynamic_title(metric, axis))
        series = query.series(definition.display_name, filters, by=axis)
        if axis == "date":
            fig = px.line(series, x=axis, y="value", markers=True)
        else:
            fig = px.bar(series, x=axis, y="value")
        fig.update_layout(
            xaxis_title=AXIS_LABELS[axis], yaxis_title=definition.display_name, showlegend=False
        )
        st.plotly_chart(fig, use_container_width=True)

        st.subheader("Vehicle Type Details")
        grid = vehicle_type_summary(apply_filters(snapshot, filters))
        st.dataframe(grid, use_container_width=True)

    render_visualizations()


if __name__ == "__main__":
    main()
