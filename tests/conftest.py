from __future__ import annotations

import io

import pandas as pd
import pytest


@pytest.fixture
def example_rows():
    return [
        {"Date": "1/5/2023", "Product Name": "A", "Total Revenue": 100, "Quantity Sold": 10},
        {"Date": "1/6/2023", "Product Name": "B", "Total Revenue": 50, "Quantity Sold": 5},
        {"Date": "2/1/2023", "Product Name": "A", "Total Revenue": 200, "Quantity Sold": 20},
    ]


@pytest.fixture
def example_csv_bytes() -> bytes:
    return (
        "Date,Product Name,Total Revenue,Quantity Sold\n"
        "1/5/2023,A,100,10\n"
        "1/6/2023,B,50,5\n"
        "2/1/2023,A,200,20\n"
    ).encode("utf-8")


@pytest.fixture
def example_xlsx_bytes(example_rows) -> bytes:
    buf = io.BytesIO()
    pd.DataFrame(example_rows).to_excel(buf, index=False, engine="openpyxl")
    return buf.getvalue()
