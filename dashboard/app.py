"""Driver Schedule Dashboard.

Interactive Gantt timeline built with Streamlit and Plotly.  The chart
engine lays out the schedule and raises create/delete requests; this
host applies them to the schedule kept in the Streamlit session.

Launch with::

    streamlit run dashboard/app.py
"""

from __future__ import annotations

from datetime import date, datetime, time

import streamlit as st

from gantt_engine.config import SAMPLE_SCHEDULE_PATH, load_chart_config
from gantt_engine.core.chart import GanttChart
from gantt_engine.core.models import CreateRequest, DeleteRequest, Padding
from gantt_engine.core.scheduling import ImmediateScheduler
from gantt_engine.data_ingestion.schedule_loader import (
    apply_create,
    apply_delete,
    load_schedule_json,
    reference_trips,
)
from gantt_engine.plotting import chart_to_figure

# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------


def _init_state() -> None:
    if "drivers" in st.session_state:
        return
    schedule = load_schedule_json(SAMPLE_SCHEDULE_PATH)
    st.session_state["drivers"] = schedule.drivers
    st.session_state["trips"] = schedule.trips
    st.session_state["current_date"] = (schedule.current_date or datetime.now()).date()
    st.session_state["log"] = []


def _apply_create(chart: GanttChart, request: CreateRequest) -> None:
    """Append the proposed trip to the driver it was brushed on."""
    start, end = request.duration
    trip = apply_create(
        st.session_state["drivers"],
        chart.snapshot,
        request,
        name=st.session_state.get("new_trip_name") or "New trip",
    )
    if trip is not None:
        st.session_state["log"].append(
            f"Created trip for {request.target.name}: {start:%H:%M} - {end:%H:%M}"
        )


def _apply_delete(request: DeleteRequest) -> None:
    """Drop the trip at the reported indices, ignoring unresolved ones."""
    removed = apply_delete(st.session_state["drivers"], request)
    if removed is None:
        return
    record = st.session_state["drivers"][request.driver_index]
    st.session_state["log"].append(
        f"Deleted {removed.get('name', 'trip')} of "
        f"{record.get('driver') or record.get('name')}"
    )


def _build_chart(width: float, batch_height: float, current_date: date) -> GanttChart:
    config = load_chart_config()
    chart = GanttChart(config=config, scheduler=ImmediateScheduler())
    chart.width = width
    chart.batch_height = batch_height
    chart.padding = Padding(
        top=config.padding.top,
        right=config.padding.right,
        bottom=config.padding.bottom,
        left=max(config.padding.left, 90.0),
    )
    chart.current_date = datetime.combine(current_date, time.min)
    chart.trips = st.session_state["trips"] or reference_trips(
        st.session_state["drivers"]
    )
    chart.create.subscribe(lambda request: _apply_create(chart, request))
    chart.delete.subscribe(_apply_delete)
    chart.drivers = st.session_state["drivers"]
    return chart


# ---------------------------------------------------------------------------
# Streamlit app
# ---------------------------------------------------------------------------


def main() -> None:
    """Entry point for the Streamlit dashboard."""
    st.set_page_config(page_title="Driver Schedule", layout="wide")
    st.title("Driver Schedule Dashboard")
    _init_state()

    # ── Sidebar ──────────────────────────────────────────────────────────
    st.sidebar.header("Chart Settings")

    current_date: date = st.sidebar.date_input(
        "Day", value=st.session_state["current_date"]
    )
    width: int = st.sidebar.slider(
        "Chart width (px)", min_value=600, max_value=1600, value=1000, step=50
    )
    batch_height: int = st.sidebar.slider(
        "Row height (px)", min_value=30, max_value=120, value=60, step=5
    )
    st.session_state["current_date"] = current_date

    chart = _build_chart(float(width), float(batch_height), current_date)

    # ── Section 1: Timeline ──────────────────────────────────────────────
    st.header("1 -- Timeline")
    if not chart.drivers:
        st.info("The schedule has no drivers.")
        return
    st.plotly_chart(chart_to_figure(chart), use_container_width=True)

    col_create, col_delete = st.columns(2)

    # ── Section 2: Brush a new trip ──────────────────────────────────────
    with col_create:
        st.subheader("New trip")
        with st.form("brush"):
            driver_names = [driver.name for driver in chart.drivers]
            row = st.selectbox(
                "Driver", options=range(len(driver_names)),
                format_func=lambda i: driver_names[i],
            )
            st.text_input("Trip name", key="new_trip_name", value="New trip")
            start_t: time = st.time_input("From", value=time(9, 0), step=300)
            end_t: time = st.time_input("To", value=time(10, 0), step=300)
            submitted = st.form_submit_button("Brush")

        if submitted:
            target = chart.drivers[row]
            x = chart.scales.x
            chart.brush_for(target.key).gesture(
                x(datetime.combine(current_date, start_t)),
                x(datetime.combine(current_date, end_t)),
            )
            st.rerun()

    # ── Section 3: Select and delete ─────────────────────────────────────
    with col_delete:
        st.subheader("Delete trip")
        options = [
            (driver.name, trip)
            for driver in chart.drivers
            for trip in driver.trips
        ]
        if not options:
            st.write("No trips to delete.")
        else:
            choice = st.selectbox(
                "Trip",
                options=range(len(options)),
                format_func=lambda i: (
                    f"{options[i][0]} -- {options[i][1].name} "
                    f"({options[i][1].start:%H:%M}-{options[i][1].end:%H:%M})"
                ),
            )
            if st.button("Delete selected"):
                chart.click_trip(options[choice][1].key)
                chart.keyboard.press("Delete")
                st.rerun()

    chart.close()

    st.markdown("---")
    for line in reversed(st.session_state["log"][-5:]):
        st.caption(line)


if __name__ == "__main__":
    main()
