"""
Daily Line Dashboard — Interactive cards

Run with:  streamlit run app.py
"""

import asyncio
from datetime import date, timedelta

import plotly.graph_objects as go
import streamlit as st

from linea_dashboard.config import (
    CACHE_TTL_SECONDS,
    DEFAULT_GID,
    DEFAULT_HEADER_ROW,
    DEFAULT_METRIC_COL,
    DEFAULT_SHEET_URL,
    DEFAULT_WINDOW_DAYS,
    normalize_config,
)
from linea_dashboard.dashboard import get_kpi_trend, get_window_overview
from linea_dashboard.errors import ConfigError, LineaDashboardError
from linea_dashboard.loaders import SheetClient, extract_spreadsheet_id
from linea_dashboard.models import PipelineResult
from linea_dashboard.pipeline import ingest_text
from linea_dashboard.simulator import generate_sheet_csv

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Daily Line Dashboard",
    page_icon="📋",
    layout="wide",
    initial_sidebar_state="expanded",
)

TONE_COLORS = {
    "ok": "#22c55e",
    "empty": "#f59e0b",
    "error": "#ef4444",
}


# ---------------------------------------------------------------------------
# Data loading (cached; the TTL doubles as the periodic refresh)
# ---------------------------------------------------------------------------
async def _download(url: str, gid: str) -> str:
    async with SheetClient() as client:
        return await client.fetch_csv(extract_spreadsheet_id(url), gid)


@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner="Downloading the sheet…")
def load_sheet_text(url: str, gid: str) -> str:
    return asyncio.run(_download(url, gid))


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("Daily Line Dashboard")
st.sidebar.markdown("One card per day from the operations sheet")
st.sidebar.divider()

use_demo = st.sidebar.toggle("Synthetic demo data", value=False)
sheet_url = st.sidebar.text_input("Sheet URL", value=DEFAULT_SHEET_URL, disabled=use_demo)
gid = st.sidebar.text_input("Tab id (gid)", value=DEFAULT_GID, disabled=use_demo)
header_row = st.sidebar.number_input("Header row (day labels)", min_value=1, value=DEFAULT_HEADER_ROW)
metric_col = st.sidebar.number_input("Metric column (A=1)", min_value=1, value=DEFAULT_METRIC_COL)
window_days = st.sidebar.slider("Trailing days", min_value=1, max_value=31, value=DEFAULT_WINDOW_DAYS)

with st.sidebar.expander("Absence id block (optional)"):
    st.caption("Fixed cell block holding absent employee ids. Leave blank to read the named row.")
    aux_row_start = st.number_input("First row", min_value=1, value=None, key="aux_row_start")
    aux_row_end = st.number_input("Last row", min_value=1, value=None, key="aux_row_end")
    aux_col_start = st.number_input("First column (A=1)", min_value=1, value=None, key="aux_col_start")
    aux_col_end = st.number_input("Last column (A=1)", min_value=1, value=None, key="aux_col_end")
    absence_source = st.selectbox("Absence source", ["auto", "name", "range"])

if st.sidebar.button("Reload now"):
    load_sheet_text.clear()

st.sidebar.divider()
st.sidebar.link_button("Open sheet", sheet_url)

try:
    config = normalize_config({
        "header_row": header_row,
        "metric_col": metric_col,
        "window_days": window_days,
        "aux_row_start": aux_row_start,
        "aux_row_end": aux_row_end,
        "aux_col_start": aux_col_start,
        "aux_col_end": aux_col_end,
        "absence_source": None if absence_source == "auto" else absence_source,
    })
except ConfigError as exc:
    st.error(f"Configuration error: {exc}")
    st.stop()

today = date.today()
if use_demo:
    result = ingest_text(generate_sheet_csv(start=today - timedelta(days=11)), config, today=today)
else:
    try:
        result = ingest_text(load_sheet_text(sheet_url, gid), config, today=today)
    except LineaDashboardError as exc:
        result = PipelineResult.failed(exc)


# ---------------------------------------------------------------------------
# Helpers: KPI tile, metric table
# ---------------------------------------------------------------------------
def kpi_tile(label: str, value: str):
    st.markdown(
        f"""
        <div style="background: #0f172a0d; border-radius: 8px; padding: 8px 12px; margin-bottom: 6px;">
            <div style="font-size: 12px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 22px; font-weight: 700;">{value}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def metric_rows(table: list[dict], limit: int | None = None):
    rows = table if limit is None else table[:limit]
    for entry in rows:
        left, right = st.columns([3, 2])
        left.markdown(entry["name"])
        right.markdown(f"**{entry['value'] or '—'}**")


# ===========================================================================
# Cards
# ===========================================================================
st.title("Daily cards")

query = st.text_input("Search", placeholder="Metric, value or legajo…")
overview = get_window_overview(result, query)

color = TONE_COLORS.get(overview["status"], "#95a5a6")
if overview["status"] == "ok":
    st.markdown(
        f"<span style='color:{color}'>Ready: {len(overview['cards'])} card(s), "
        f"anchor day {overview['anchor']}, {overview['total_days']} day(s) in the sheet.</span>",
        unsafe_allow_html=True,
    )
elif overview["status"] == "empty":
    st.warning(overview["message"])
else:
    st.error(overview["message"])

if overview["status"] == "ok" and overview["message"]:
    st.info(overview["message"])

cols = st.columns(3)
for i, card in enumerate(overview["cards"]):
    with cols[i % 3]:
        with st.container(border=True):
            summary = card["summary"]
            st.markdown(f"**{card['label']}** · {summary['total']} metrics")

            k1, k2 = st.columns(2)
            with k1:
                kpi_tile("Línea TM", card["kpis"]["line_tm"])
            with k2:
                kpi_tile("Línea TT", card["kpis"]["line_tt"])
            ids = card["kpis"]["absence_ids"]
            kpi_tile("Inasistencias", ", ".join(ids) if ids else "—")

            st.caption(f"With value: {summary['with_value']} · Top: {summary['top']}")
            metric_rows(card["table"], limit=10)

            with st.expander("Full day detail"):
                metric_rows(card["table"])

# ===========================================================================
# Trend
# ===========================================================================
if result.window:
    st.divider()
    st.subheader("Line trend")

    trend = get_kpi_trend(result.window)
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=trend["date"],
        y=trend["line_tm"],
        name="Línea TM",
        marker_color="#3498db",
    ))
    fig.add_trace(go.Bar(
        x=trend["date"],
        y=trend["line_tt"],
        name="Línea TT",
        marker_color="#9b59b6",
    ))
    fig.add_trace(go.Scatter(
        x=trend["date"],
        y=trend["absences"],
        name="Absences",
        mode="lines+markers",
        yaxis="y2",
        line=dict(color="#e74c3c", width=2, dash="dash"),
    ))
    fig.update_layout(
        barmode="group",
        height=380,
        plot_bgcolor="rgba(0,0,0,0)",
        yaxis=dict(title="Count"),
        yaxis2=dict(title="Absences", overlaying="y", side="right"),
        margin=dict(l=10, r=10, t=10, b=40),
    )
    st.plotly_chart(fig, use_container_width=True)
