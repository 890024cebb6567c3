"""Streamlit dashboard for RetailPulse.

Provides CSV upload with validation feedback, footfall analytics with
hourly and daily charts, the 24-hour forecast, geospatial density
insights, and staffing/marketing recommendations.
"""

from typing import Optional

import numpy as np
import pandas as pd
import plotly.express as px
import streamlit as st
import yaml

from src.analytics.aggregation import hour_label
from src.analytics.geo import max_intensity, top_bins
from src.analytics.records import ValidationReport, validate_rows
from src.analytics.report import AnalyticsReport, build_report
from src.utils.config import AppConfig, config_from_dict
from src.utils.data_io import read_footfall_csv, template_csv_text

DAILY_CHART_DAYS = 14
BIN_COLUMNS = ["Latitude", "Longitude", "Footfall", "Intensity (%)"]


def main() -> None:
    """Entry point for the Streamlit dashboard."""
    st.set_page_config(page_title="RetailPulse", layout="wide")

    if "report" not in st.session_state:
        st.session_state.report = None
    if "preview" not in st.session_state:
        st.session_state.preview = None

    st.title("RetailPulse Footfall Dashboard")

    with st.sidebar:
        st.header("Configuration")
        seed = st.number_input("Random Seed", min_value=0, value=42, step=1)
        config_file = st.file_uploader(
            "Upload Config (YAML)", type=["yaml", "yml"]
        )

    tabs = st.tabs(
        ["Upload", "Analytics", "Forecast", "Geo Insights", "Recommendations"]
    )

    with tabs[0]:
        _upload_tab(int(seed), config_file)
    with tabs[1]:
        _analytics_tab()
    with tabs[2]:
        _forecast_tab()
    with tabs[3]:
        _geo_insights_tab()
    with tabs[4]:
        _recommendations_tab()


def read_upload(csv_file) -> ValidationReport:
    """Read and validate an uploaded footfall CSV.

    Raises:
        ValueError: If the file cannot be decoded, parsed or validated.
    """
    return validate_rows(read_footfall_csv(csv_file))


def read_config_upload(config_file) -> AppConfig:
    """Parse an uploaded config YAML, using defaults when absent or empty.

    Raises:
        ValueError: If the YAML is malformed or holds invalid options.
    """
    if config_file is None:
        return AppConfig()
    try:
        raw = yaml.safe_load(config_file)
        if not raw:
            return AppConfig()
        if not isinstance(raw, dict):
            raise ValueError("Config must be a mapping of sections")
        return config_from_dict(raw)
    except (yaml.YAMLError, TypeError) as exc:
        raise ValueError(f"Invalid config file: {exc}") from exc


def _upload_tab(seed: int, config_file) -> None:
    """Render the CSV upload tab.

    Args:
        seed: Random seed from the sidebar.
        config_file: Uploaded config YAML file or None.
    """
    st.header("Upload Your Data")
    st.markdown(
        "Required columns: `timestamp`, `footfall`. "
        "Optional: `latitude`, `longitude` (for heatmaps). "
        "Timestamp format: `YYYY-MM-DD HH:MM`."
    )
    st.download_button(
        "Download CSV Template",
        data=template_csv_text(),
        file_name="footfall_template.csv",
        mime="text/csv",
    )

    csv_file = st.file_uploader("Upload CSV", type=["csv"])
    if csv_file is None:
        return

    try:
        config = read_config_upload(config_file)
    except ValueError as exc:
        st.error(str(exc))
        return

    try:
        validation = read_upload(csv_file)
    except ValueError as exc:  # includes SchemaError and EmptyInputError
        st.error(str(exc))
        return

    for warning in validation.warnings:
        st.info(warning)

    st.session_state.report = build_report(
        validation, config, rng=np.random.default_rng(seed)
    )
    st.session_state.preview = pd.DataFrame(
        [r.to_dict() for r in validation.records[:20]]
    )
    st.success(f"Successfully uploaded {validation.row_count} records")
    st.dataframe(st.session_state.preview, use_container_width=True)


def _current_report() -> Optional[AnalyticsReport]:
    report = st.session_state.get("report")
    if report is None or report.summary is None:
        st.info("Upload footfall data first")
        return None
    return report


def hourly_frame(report: AnalyticsReport) -> pd.DataFrame:
    """Hourly averages as a 24-row frame for charting."""
    return pd.DataFrame(
        {
            "Hour": [hour_label(h) for h in range(len(report.buckets))],
            "Average Footfall": report.hourly_averages,
        }
    )


def daily_frame(report: AnalyticsReport, days: int = DAILY_CHART_DAYS) -> pd.DataFrame:
    """Chronologically sorted daily totals, limited to the last ``days``."""
    df = pd.DataFrame(
        list(report.daily_totals.items()), columns=["Date", "Footfall"]
    )
    return df.sort_values("Date").tail(days).reset_index(drop=True)


def forecast_frame(report: AnalyticsReport) -> pd.DataFrame:
    """Forecast points as a frame, empty when there is no forecast."""
    if report.forecast is None:
        return pd.DataFrame(columns=["Time", "Predicted"])
    return pd.DataFrame(
        {
            "Time": [p.timestamp for p in report.forecast.points],
            "Predicted": [p.predicted_footfall for p in report.forecast.points],
        }
    )


def bins_frame(report: AnalyticsReport, n: int = 20) -> pd.DataFrame:
    """Top location bins with their intensity percentage."""
    peak = max_intensity(report.location_bins)
    rows = [
        {
            "Latitude": b.lat,
            "Longitude": b.lng,
            "Footfall": b.count,
            "Intensity (%)": round(b.intensity(peak) * 100),
        }
        for b in top_bins(report.location_bins, n)
    ]
    return pd.DataFrame(rows, columns=BIN_COLUMNS)


def _analytics_tab() -> None:
    """Render KPI cards and hourly/daily charts."""
    st.header("Analytics")
    report = _current_report()
    if report is None:
        return

    summary = report.summary
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Footfall", f"{summary.total:,}")
    col2.metric("Average Footfall", summary.average)
    col3.metric("Peak Hour", hour_label(summary.peak_hour))
    col4.metric("Peak Day", summary.peak_day)
    st.caption(f"Lowest hour: {hour_label(summary.lowest_hour)}")

    fig = px.line(
        hourly_frame(report), x="Hour", y="Average Footfall", title="Hourly Pattern"
    )
    st.plotly_chart(fig, use_container_width=True)

    fig = px.bar(daily_frame(report), x="Date", y="Footfall", title="Daily Footfall")
    st.plotly_chart(fig, use_container_width=True)


def _forecast_tab() -> None:
    """Render the 24-hour forecast and its insights."""
    st.header("Forecast")
    report = _current_report()
    if report is None:
        return

    fc = report.forecast
    trend = f"{fc.trend_percent}%" if fc.trend_percent is not None else "n/a"
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Predicted (24h)", fc.total_predicted)
    col2.metric("Average / Hour", fc.avg_predicted)
    col3.metric("Peak Hour", fc.peak_point.hour_label)
    col4.metric("Trend", fc.trend_direction, trend)
    st.caption(f"Confidence: {fc.confidence}")

    fig = px.line(
        forecast_frame(report), x="Time", y="Predicted", title="Next 24 Hours"
    )
    st.plotly_chart(fig, use_container_width=True)


def _geo_insights_tab() -> None:
    """Render the location density table and map."""
    st.header("Geo Insights")
    report = _current_report()
    if report is None:
        return

    if not report.has_location_data:
        st.warning(
            "Heatmap features are disabled because the uploaded data has no "
            "latitude and longitude columns"
        )
        return

    col1, col2 = st.columns(2)
    col1.metric("Unique Locations", len(report.location_bins))
    if report.map_center:
        col2.metric(
            "Center", f"{report.map_center[0]:.4f}, {report.map_center[1]:.4f}"
        )

    df = bins_frame(report)
    st.dataframe(df, use_container_width=True)
    if not df.empty:
        fig = px.scatter_mapbox(
            df,
            lat="Latitude",
            lon="Longitude",
            size="Footfall",
            color="Intensity (%)",
            zoom=14,
            mapbox_style="open-street-map",
        )
        st.plotly_chart(fig, use_container_width=True)


def _recommendations_tab() -> None:
    """Render staffing, marketing and location recommendations."""
    st.header("Recommendations")
    report = _current_report()
    if report is None or report.recommendations is None:
        return

    recs = report.recommendations
    st.metric("Average Hourly Footfall", recs.avg_footfall)

    st.subheader("Staffing")
    st.dataframe(
        pd.DataFrame(
            [
                {"Time Slot": s.time_slot, "Staff": s.staff_count, "Reason": s.reason}
                for s in recs.staffing
            ]
        ),
        use_container_width=True,
    )

    st.subheader("Marketing")
    for m in recs.marketing:
        st.write(f"**{m.time_slot}**: {m.discount_percent}% off, {m.description}")

    if recs.location:
        st.subheader("Location")
        for loc in recs.location:
            st.write(f"**{loc.area}** ({loc.impact} impact): {loc.suggestion}")


if __name__ == "__main__":
    main()
