"""Core (UI-agnostic) sales dashboard logic.

This package contains:
- upload parsing (CSV / XLS / XLSX -> pandas)
- settings normalization
- the aggregation pipeline (rows -> six chart datasets)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
