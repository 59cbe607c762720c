from __future__ import annotations

from core.aggregate import (
    AVERAGE_REVENUE,
    MONTHLY_GROWTH,
    QUANTITY_SOLD,
    REVENUE_OVER_TIME,
    REVENUE_VS_QUANTITY,
    ChartData,
    Series,
    aggregate,
)
from core.charts import build_chart, build_charts, chart_frame, chart_specs, to_vega_spec


def test_chart_frame_drops_undefined_points():
    data = ChartData(labels=["A", "B", "C"], datasets=[Series(name="Avg", values=[1.0, None, 3.0])])
    df = chart_frame(data)
    assert df["label"].tolist() == ["A", "C"]
    assert df["position"].tolist() == [0, 2]
    assert df["value"].tolist() == [1.0, 3.0]


def test_chart_frame_splits_scatter_points():
    data = ChartData(labels=["A"], datasets=[Series(name="RvQ", values=[{"x": 3.0, "y": 9.0}])])
    df = chart_frame(data)
    assert df[["label", "x", "y"]].to_dict(orient="records") == [{"label": "A", "x": 3.0, "y": 9.0}]


def test_chart_frame_empty():
    df = chart_frame(ChartData(labels=[], datasets=[Series(name="Empty", values=[])]))
    assert df.empty
    assert "value" in df.columns


def test_chart_specs_marks(example_rows):
    specs = chart_specs(aggregate(example_rows))
    assert set(specs) == {
        REVENUE_OVER_TIME,
        "productRevenue",
        QUANTITY_SOLD,
        AVERAGE_REVENUE,
        REVENUE_VS_QUANTITY,
        MONTHLY_GROWTH,
    }

    def mark_type(spec):
        mark = spec["mark"]
        return mark["type"] if isinstance(mark, dict) else mark

    assert mark_type(specs[REVENUE_OVER_TIME]) == "line"
    assert mark_type(specs[MONTHLY_GROWTH]) == "line"
    assert mark_type(specs[AVERAGE_REVENUE]) == "bar"
    assert mark_type(specs[REVENUE_VS_QUANTITY]) == "point"
    # quantity sold is a horizontal bar: products on the y axis
    assert specs[QUANTITY_SOLD]["encoding"]["y"]["field"] == "label"
    assert specs[QUANTITY_SOLD]["encoding"]["x"]["field"] == "value"


def test_build_charts_handles_empty_input():
    charts = build_charts(aggregate([]))
    assert len(charts) == 6
    for chart in charts.values():
        assert "$schema" in chart.to_dict()


def test_chart_frame_starts_a_segment_after_each_gap():
    data = ChartData(labels=["Jan", "Feb", "Mar"], datasets=[Series(name="Growth", values=[1.0, None, 3.0])])
    df = chart_frame(data)
    assert df["segment"].tolist() == [0, 1]


def test_line_chart_keeps_one_slot_per_label():
    data = ChartData(
        labels=["1/5/2023", "1/5/2023", "1/6/2023"],
        datasets=[Series(name="Revenue", values=[10.0, 20.0, None])],
    )
    spec = to_vega_spec(build_chart(REVENUE_OVER_TIME, data))
    x = spec["encoding"]["x"]
    assert x["field"] == "position"
    assert x["scale"]["domain"] == [0, 1, 2]
    assert spec["encoding"]["detail"]["field"] == "segment"
    assert chart_frame(data)["position"].tolist() == [0, 1]
