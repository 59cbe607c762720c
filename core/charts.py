from __future__ import annotations

import json
from typing import Any, Dict

import altair as alt
import pandas as pd

from core.aggregate import (
    AVERAGE_REVENUE,
    MONTHLY_GROWTH,
    PRODUCT_REVENUE,
    QUANTITY_SOLD,
    REVENUE_OVER_TIME,
    REVENUE_VS_QUANTITY,
    ChartData,
    SalesCharts,
)

alt.data_transformers.disable_max_rows()

# name -> (mark, color, label axis title, value axis title, value format)
CHART_STYLES: Dict[str, tuple] = {
    REVENUE_OVER_TIME: ("line", "#00bcd4", "Date", "Revenue", "$~s"),
    PRODUCT_REVENUE: ("bar", "#00bcd4", "Product", "Revenue", "$~s"),
    QUANTITY_SOLD: ("barh", "#ff9800", "Product", "Quantity Sold", "~s"),
    AVERAGE_REVENUE: ("bar", "#4caf50", "Product", "Revenue per Unit", "$,.2f"),
    REVENUE_VS_QUANTITY: ("point", "#9c27b0", "Quantity Sold", "Revenue", "$~s"),
    MONTHLY_GROWTH: ("line", "#f44336", "Month", "Growth (%)", ".1f"),
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def chart_frame(data: ChartData) -> pd.DataFrame:
    """Long-form frame of one dataset: position, label, series and value.

    Undefined points (None) are dropped and start a new ``segment`` so a line
    breaks there instead of bridging the gap. Scatter points are split into
    ``x``/``y`` columns.
    """
    records = []
    for series in data.datasets:
        segment = 0
        for position, (label, value) in enumerate(zip(data.labels, series.values)):
            if value is None:
                segment += 1
                continue
            row = {"position": position, "label": label, "series": series.name, "segment": segment}
            if isinstance(value, dict):
                row["x"] = value.get("x")
                row["y"] = value.get("y")
            else:
                row["value"] = value
            records.append(row)
    return pd.DataFrame.from_records(records, columns=["position", "label", "series", "segment", "value", "x", "y"])


def build_chart(name: str, data: ChartData) -> alt.Chart:
    mark, color, label_title, value_title, value_format = CHART_STYLES[name]
    df = chart_frame(data)
    title = data.datasets[0].name if data.datasets else name
    base = alt.Chart(df).properties(title=title, height=260)
    value_axis = alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)

    if mark == "point":
        return base.mark_point(filled=True, size=80, color=color).encode(
            x=alt.X("x:Q", title=label_title, axis=alt.Axis(format="~s", grid=False)),
            y=alt.Y("y:Q", title=value_title, axis=value_axis),
            tooltip=[
                alt.Tooltip("label:N", title="Product"),
                alt.Tooltip("x:Q", title=label_title, format=","),
                alt.Tooltip("y:Q", title=value_title, format="$,.2f"),
            ],
        )

    tooltip = [
        alt.Tooltip("label:N", title=label_title),
        alt.Tooltip("value:Q", title=value_title, format=value_format.replace("~s", ",.2f")),
    ]
    if mark == "barh":
        return base.mark_bar(color=color).encode(
            y=alt.Y("label:N", title=label_title, sort=None, axis=alt.Axis(grid=False)),
            x=alt.X("value:Q", title=value_title, axis=value_axis),
            tooltip=tooltip,
        )
    if mark == "bar":
        return base.mark_bar(color=color).encode(
            x=alt.X("label:N", title=label_title, sort=None, axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", title=value_title, axis=value_axis),
            tooltip=tooltip,
        )
    # one x slot per label; undefined points keep their tick
    position_axis = alt.Axis(grid=False, labelExpr=f"{json.dumps(list(data.labels))}[datum.value]")
    return base.mark_line(point={"filled": True, "size": 60}, color=color).encode(
        x=alt.X(
            "position:O",
            title=label_title,
            scale=alt.Scale(domain=list(range(len(data.labels)))),
            axis=position_axis,
        ),
        y=alt.Y("value:Q", title=value_title, axis=value_axis),
        detail="segment:N",
        order=alt.Order("position:Q"),
        tooltip=tooltip,
    )


def build_charts(charts: SalesCharts) -> Dict[str, alt.Chart]:
    return {name: build_chart(name, data) for name, data in charts.items()}


def chart_specs(charts: SalesCharts) -> Dict[str, Dict[str, Any]]:
    return {name: to_vega_spec(chart) for name, chart in build_charts(charts).items()}
