from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from core.data import (
    PRODUCT_COL,
    QUANTITY_COL,
    REVENUE_COL,
    Rows,
    ordered_unique,
    prepare_rows,
)
from core.settings import DashboardSettings


REVENUE_OVER_TIME = "revenueOverTime"
PRODUCT_REVENUE = "productRevenue"
QUANTITY_SOLD = "quantitySold"
AVERAGE_REVENUE = "averageRevenue"
REVENUE_VS_QUANTITY = "revenueVsQuantity"
MONTHLY_GROWTH = "monthlyGrowth"

SERIES_NAMES = {
    REVENUE_OVER_TIME: "Revenue Over Time",
    PRODUCT_REVENUE: "Product-Wise Revenue",
    QUANTITY_SOLD: "Quantity Sold",
    AVERAGE_REVENUE: "Average Revenue per Product",
    REVENUE_VS_QUANTITY: "Revenue vs Quantity Sold",
    MONTHLY_GROWTH: "Monthly Revenue Growth (%)",
}


@dataclass(frozen=True)
class Series:
    name: str
    values: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ChartData:
    labels: List[str] = field(default_factory=list)
    datasets: List[Series] = field(default_factory=list)

    @property
    def values(self) -> List[Any]:
        return self.datasets[0].values if self.datasets else []


@dataclass(frozen=True)
class SalesCharts:
    revenue_over_time: ChartData
    product_revenue: ChartData
    quantity_sold: ChartData
    average_revenue: ChartData
    revenue_vs_quantity: ChartData
    monthly_growth: ChartData

    _KEYS = {
        REVENUE_OVER_TIME: "revenue_over_time",
        PRODUCT_REVENUE: "product_revenue",
        QUANTITY_SOLD: "quantity_sold",
        AVERAGE_REVENUE: "average_revenue",
        REVENUE_VS_QUANTITY: "revenue_vs_quantity",
        MONTHLY_GROWTH: "monthly_growth",
    }

    def __getitem__(self, name: str) -> ChartData:
        return getattr(self, self._KEYS[name])

    def items(self) -> Iterator[Tuple[str, ChartData]]:
        for name, attr in self._KEYS.items():
            yield name, getattr(self, attr)

    def to_dict(self) -> Dict[str, Any]:
        return {name: asdict(chart) for name, chart in self.items()}


def _number(value: object) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    out = float(value)
    if not np.isfinite(out):
        return None
    return out


def safe_ratio(numerator: object, denominator: object, *, scale: float = 1.0) -> Optional[float]:
    """numerator / denominator * scale, or None when the result is undefined."""
    num = _number(numerator)
    den = _number(denominator)
    if num is None or den is None or den == 0:
        return None
    return num / den * scale


def _chart(name: str, labels: List[Any], values: List[Any]) -> ChartData:
    return ChartData(labels=[str(x) for x in labels], datasets=[Series(name=SERIES_NAMES[name], values=values)])


def product_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Revenue and quantity sums per product, indexed in first-occurrence order."""
    products = ordered_unique(df[PRODUCT_COL].tolist())
    if not products:
        return pd.DataFrame({REVENUE_COL: [], QUANTITY_COL: []}, dtype=float)
    totals = df.groupby(PRODUCT_COL, sort=False)[[REVENUE_COL, QUANTITY_COL]].sum()
    return totals.reindex(products).fillna(0.0)


def month_label(key: Tuple[int, int]) -> str:
    year, month = key
    return f"{month}/{year}"


def monthly_revenue(df: pd.DataFrame) -> pd.Series:
    """Revenue per (year, month) bucket, labelled ``M/YYYY`` in first-occurrence order.

    Rows whose date could not be parsed do not belong to any bucket.
    """
    dated = df.dropna(subset=["year", "month"])
    keys = ordered_unique(zip(dated["year"].astype(int).tolist(), dated["month"].astype(int).tolist()))
    if not keys:
        return pd.Series(dtype=float)
    sums = dated.assign(year=dated["year"].astype(int), month=dated["month"].astype(int)).groupby(
        ["year", "month"], sort=False
    )[REVENUE_COL].sum()
    return pd.Series([float(sums.loc[k]) for k in keys], index=[month_label(k) for k in keys], dtype=float)


def growth_rates(revenue: List[float]) -> List[Optional[float]]:
    out: List[Optional[float]] = []
    for i, current in enumerate(revenue):
        if i == 0:
            out.append(0.0)
            continue
        previous = revenue[i - 1]
        out.append(safe_ratio(current - previous, previous, scale=100.0))
    return out


def aggregate(rows: Rows, settings: Optional[DashboardSettings] = None) -> SalesCharts:
    df = prepare_rows(rows, settings)

    revenue_over_time = _chart(
        REVENUE_OVER_TIME,
        df["date_label"].tolist(),
        [_number(v) for v in df[REVENUE_COL].tolist()],
    )

    totals = product_totals(df)
    products = totals.index.tolist()
    revenue_sums = [float(v) for v in totals[REVENUE_COL].tolist()]
    quantity_sums = [float(v) for v in totals[QUANTITY_COL].tolist()]

    monthly = monthly_revenue(df)

    return SalesCharts(
        revenue_over_time=revenue_over_time,
        product_revenue=_chart(PRODUCT_REVENUE, products, revenue_sums),
        quantity_sold=_chart(QUANTITY_SOLD, products, quantity_sums),
        average_revenue=_chart(
            AVERAGE_REVENUE,
            products,
            [safe_ratio(rev, qty) for rev, qty in zip(revenue_sums, quantity_sums)],
        ),
        revenue_vs_quantity=_chart(
            REVENUE_VS_QUANTITY,
            products,
            [{"x": qty, "y": rev} for rev, qty in zip(revenue_sums, quantity_sums)],
        ),
        monthly_growth=_chart(MONTHLY_GROWTH, monthly.index.tolist(), growth_rates(monthly.tolist())),
    )


def summarize(charts: SalesCharts) -> Dict[str, Any]:
    """Headline totals for the KPI row."""
    return {
        "total_revenue": float(sum(v for v in charts.product_revenue.values if v is not None)),
        "total_quantity": float(sum(v for v in charts.quantity_sold.values if v is not None)),
        "products": len(charts.product_revenue.labels),
        "months": len(charts.monthly_growth.labels),
    }
