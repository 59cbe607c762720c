from __future__ import annotations

import datetime as dt
import enum
import io
import logging
import re
from pathlib import PurePath
from typing import Any, Hashable, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from core.settings import DEFAULT_SETTINGS, DashboardSettings


logger = logging.getLogger(__name__)

DATE_COL = "Date"
PRODUCT_COL = "Product Name"
REVENUE_COL = "Total Revenue"
QUANTITY_COL = "Quantity Sold"
REQUIRED_COLUMNS = (DATE_COL, PRODUCT_COL, REVENUE_COL, QUANTITY_COL)

CSV_EXTENSIONS = {"csv"}
SPREADSHEET_EXTENSIONS = {"xls", "xlsx"}

_NUMBER_NOISE = re.compile(r"[,\s$€£]")

Rows = Union[pd.DataFrame, Sequence[Mapping[str, Any]]]


class ParseError(ValueError):
    """Raised when uploaded content cannot be turned into rows."""


class UnsupportedFileError(ParseError):
    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"Unsupported file type: {file_name!r}. Upload a .csv, .xls or .xlsx file.")


class MissingColumnsError(ParseError):
    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required column(s): {', '.join(self.missing)}")


class FileKind(enum.Enum):
    CSV = "csv"
    SPREADSHEET = "spreadsheet"
    UNSUPPORTED = "unsupported"


def file_extension(file_name: str) -> str:
    return PurePath(file_name or "").suffix.lstrip(".").lower()


def detect_file_kind(file_name: str) -> FileKind:
    ext = file_extension(file_name)
    if ext in CSV_EXTENSIONS:
        return FileKind.CSV
    if ext in SPREADSHEET_EXTENSIONS:
        return FileKind.SPREADSHEET
    return FileKind.UNSUPPORTED


def read_csv_bytes(file_bytes: bytes) -> pd.DataFrame:
    try:
        return pd.read_csv(
            io.BytesIO(file_bytes),
            encoding="utf-8-sig",
            skip_blank_lines=True,
            dtype={PRODUCT_COL: str, DATE_COL: str},
        )
    except pd.errors.EmptyDataError as exc:
        raise ParseError("The CSV file is empty.") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise ParseError(f"Could not parse CSV: {exc}") from exc


def read_spreadsheet_bytes(file_bytes: bytes) -> pd.DataFrame:
    """Read the first sheet of an .xls/.xlsx workbook, first row as header."""
    if not file_bytes:
        raise ParseError("The spreadsheet file is empty.")
    try:
        return pd.read_excel(io.BytesIO(file_bytes), sheet_name=0)
    except ImportError:
        raise
    except Exception as exc:
        raise ParseError(f"Could not parse spreadsheet: {exc}") from exc


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    dupes = df.columns[df.columns.duplicated()]
    if len(dupes):
        logger.warning("Duplicate column(s) %s; keeping the first occurrence", ", ".join(map(str, ordered_unique(dupes))))
    return df.loc[:, ~df.columns.duplicated()]


def strip_headers(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = [str(c).strip() for c in df.columns]
    return drop_duplicate_columns(df)


def parse_upload(file_bytes: bytes, file_name: str) -> pd.DataFrame:
    kind = detect_file_kind(file_name)
    if kind is FileKind.CSV:
        df = read_csv_bytes(file_bytes)
    elif kind is FileKind.SPREADSHEET:
        df = read_spreadsheet_bytes(file_bytes)
    else:
        raise UnsupportedFileError(file_name)
    df = strip_headers(df)
    logger.info("Parsed %s as %s: %d rows, %d columns", file_name, kind.value, len(df), len(df.columns))
    return df


def ordered_unique(values: Iterable[Hashable]) -> List[Hashable]:
    """Distinct values in first-occurrence order."""
    seen = set()
    out = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


def _strip_number_noise(value: object) -> object:
    if isinstance(value, str):
        return _NUMBER_NOISE.sub("", value)
    return value


def to_number(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return pd.to_numeric(series, errors="coerce").astype(float)
    return pd.to_numeric(series.map(_strip_number_noise), errors="coerce").astype(float)


def normalize_product(value: object, unknown: str) -> str:
    if value is None:
        return unknown
    if isinstance(value, float):
        if pd.isna(value):
            return unknown
        if value.is_integer():
            return str(int(value))
    s = str(value).strip()
    if not s or s.lower() in {"nan", "none", "<na>"}:
        return unknown
    return s


def _naive(stamps: pd.Series) -> pd.Series:
    if getattr(stamps.dt, "tz", None) is not None:
        return stamps.dt.tz_localize(None)
    return stamps


def _date_text(value: object) -> Optional[str]:
    if value is None or isinstance(value, dt.date):
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    return str(value).strip() or None


def parse_dates(values: pd.Series, *, date_format: str, dayfirst: bool = False) -> pd.Series:
    """Parse a date column into naive timestamps (NaT when unparseable).

    Spreadsheet date cells pass through. Text is parsed with ``date_format``
    first; only the rows that fail get a second, mixed-format pass.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        return _naive(pd.to_datetime(values, errors="coerce"))

    is_stamp = values.map(lambda v: isinstance(v, dt.date)).astype(bool)
    stamps = _naive(pd.to_datetime(values.where(is_stamp), errors="coerce", utc=True))

    text = values.map(_date_text)
    parsed = pd.to_datetime(text, format=date_format, errors="coerce")
    retry = parsed.isna() & text.notna()
    if retry.any():
        retried = pd.to_datetime(text[retry], format="mixed", dayfirst=dayfirst, errors="coerce", utc=True)
        parsed = parsed.combine_first(_naive(retried))
    return parsed.combine_first(stamps)


def date_label(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (dt.date, pd.Timestamp)):
        if pd.isna(value):
            return ""
        return f"{value.month}/{value.day}/{value.year}"
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def rows_to_frame(rows: Rows) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        df = rows
    else:
        df = pd.DataFrame.from_records(list(rows))
    if df.empty and len(df.columns) == 0:
        return pd.DataFrame(columns=list(REQUIRED_COLUMNS))
    return df


def prepare_rows(rows: Rows, settings: Optional[DashboardSettings] = None) -> pd.DataFrame:
    """Validate the expected columns and add typed helper columns.

    Returns a new frame; the input is left untouched. Revenue and quantity
    become floats (NaN when not numeric), the product name becomes text,
    and ``date``/``year``/``month``/``day``/``date_label`` are derived from
    ``Date``.
    """
    settings = settings or DEFAULT_SETTINGS
    df = rows_to_frame(rows)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise MissingColumnsError(missing)

    out = drop_duplicate_columns(df).copy().reset_index(drop=True)
    out[REVENUE_COL] = to_number(out[REVENUE_COL])
    out[QUANTITY_COL] = to_number(out[QUANTITY_COL])
    out[PRODUCT_COL] = out[PRODUCT_COL].map(lambda v: normalize_product(v, settings.unknown_product)).astype(object)

    parsed = parse_dates(out[DATE_COL], date_format=settings.date_format, dayfirst=settings.dayfirst)
    out["date"] = parsed
    out["year"] = parsed.dt.year.astype("Int64")
    out["month"] = parsed.dt.month.astype("Int64")
    out["day"] = parsed.dt.day.astype("Int64")
    out["date_label"] = out[DATE_COL].map(date_label).astype(object)

    bad_dates = int(parsed.isna().sum())
    if bad_dates:
        logger.warning("%d row(s) have an unparseable %s and are left out of monthly buckets", bad_dates, DATE_COL)
    for col in (REVENUE_COL, QUANTITY_COL):
        bad = int(out[col].isna().sum())
        if bad:
            logger.warning("%d row(s) have a non-numeric %s", bad, col)
    return out
