import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from core.aggregate import (
    AVERAGE_REVENUE,
    MONTHLY_GROWTH,
    PRODUCT_REVENUE,
    QUANTITY_SOLD,
    REVENUE_OVER_TIME,
    REVENUE_VS_QUANTITY,
    SalesCharts,
    aggregate,
    summarize,
)
from core.charts import build_charts
from core.data import ParseError, UnsupportedFileError, parse_upload
from core.settings import DATE_FORMATS, normalize_settings

logger = logging.getLogger(__name__)

CHART_GRID = [
    (REVENUE_OVER_TIME, PRODUCT_REVENUE),
    (QUANTITY_SOLD, AVERAGE_REVENUE),
    (REVENUE_VS_QUANTITY, MONTHLY_GROWTH),
]


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .stApp {background: #121212; color: #ffffff; font-family: Roboto, sans-serif;}
        .app-header {text-align: center;padding: 32px;background: rgba(255,255,255,0.1);
                     box-shadow: 0 4px 8px rgba(0,0,0,0.3);margin-bottom: 20px;border-radius: 8px;}
        .app-header h1 {font-size: 2.6em;margin: 0;color: #ffffff;}
        .card {border-radius: 8px;padding: 20px;background: #1e1e1e;margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #ffffff;margin-bottom: 8px;}
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


def format_currency_0(value: Optional[float]) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"${float(value):,.0f}"


def render_kpi_tiles(charts: SalesCharts):
    kpis = summarize(charts)
    cols = st.columns(4)
    cols[0].metric("Total Revenue", format_currency_0(kpis["total_revenue"]))
    cols[1].metric("Quantity Sold", f"{kpis['total_quantity']:,.0f}")
    cols[2].metric("Products", f"{kpis['products']:,}")
    cols[3].metric("Months", f"{kpis['months']:,}")


def render_charts(charts: SalesCharts):
    built = build_charts(charts)
    for row in CHART_GRID:
        cols = st.columns(len(row))
        for col, name in zip(cols, row):
            data = charts[name]
            title = data.datasets[0].name if data.datasets else name
            with col:
                with card(title):
                    if not data.labels:
                        st.info("No data for this chart.")
                        continue
                    st.altair_chart(built[name], use_container_width=True)
                    if name in (AVERAGE_REVENUE, MONTHLY_GROWTH) and any(v is None for v in data.values):
                        st.caption("Gaps mark points that are undefined (division by zero).")


# ---------- UI setup ----------
st.set_page_config(page_title="Interactive Sales Dashboard", layout="wide")
inject_base_styles()
st.markdown("<div class='app-header'><h1>Interactive Sales Dashboard</h1></div>", unsafe_allow_html=True)

with st.sidebar:
    st.markdown("### Date parsing")
    date_format = st.selectbox("Date format", options=list(DATE_FORMATS), index=0)
    dayfirst = st.checkbox("Day first when guessing other formats", value=False)
settings = normalize_settings({"date_format": date_format, "dayfirst": dayfirst})

uploaded = st.file_uploader("Upload sales data", type=["csv", "xls", "xlsx"])
if uploaded is None:
    st.caption("Expected columns: Date, Product Name, Total Revenue, Quantity Sold.")
    st.stop()

try:
    rows = parse_upload(uploaded.getvalue(), uploaded.name)
    sales_charts = aggregate(rows, settings)
except UnsupportedFileError as exc:
    st.error(str(exc))
    st.stop()
except ParseError as exc:
    logger.warning("could not load %s: %s", uploaded.name, exc)
    st.error(f"Could not read {uploaded.name}: {exc}")
    st.stop()

render_kpi_tiles(sales_charts)
render_charts(sales_charts)
