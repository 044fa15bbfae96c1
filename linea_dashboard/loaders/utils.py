"""
Shared utilities for data ingestion: day-label parsing, metric-name
normalisation, cell access, numeric coercion.
"""

import logging
import re
import unicodedata
from datetime import date
from typing import Any

import pandas as pd

from ..errors import InvalidDate

logger = logging.getLogger(__name__)

# Tried in order, first match wins. Searched anywhere in the cell so labels
# like "Lun 01/02" or "2024-02-01 (feriado)" still classify.
_ISO_DATE = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")
_DAY_MONTH_YEAR = re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?!\d)")
_DAY_MONTH = re.compile(r"(?<![\d/])(\d{1,2})/(\d{1,2})(?![\d/])")


def _build_date(year: int, month: int, day: int, label: str) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(f"Header label {label!r} is not a valid date: {exc}") from exc


def parse_day_label(label: str, default_year: int) -> date | None:
    """Return the calendar day encoded in a header cell, or None.

    Accepted forms, in order: YYYY-MM-DD, D/M/YYYY or D/M/YY (two-digit
    years map to 2000+yy), D/M with `default_year`. A label that matches a
    form but names an impossible day (month 13, 31 April) raises InvalidDate.
    """
    if not label:
        return None

    m = _ISO_DATE.search(label)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _build_date(year, month, day, label)

    m = _DAY_MONTH_YEAR.search(label)
    if m:
        day, month, year = (int(g) for g in m.groups())
        if year < 100:
            year += 2000
        return _build_date(year, month, day, label)

    m = _DAY_MONTH.search(label)
    if m:
        day, month = (int(g) for g in m.groups())
        return _build_date(default_year, month, day, label)

    return None


def normalise_metric_name(name: str) -> str:
    """Lower-case, strip diacritics and collapse whitespace.

    "  Línea   TM " -> "linea tm"
    """
    decomposed = unicodedata.normalize("NFKD", str(name))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def cell(matrix: pd.DataFrame, row_idx: int, col_idx: int) -> str:
    """Cell text at 0-based (row, col); out-of-range positions read as ""."""
    if row_idx < 0 or col_idx < 0:
        return ""
    if row_idx >= matrix.shape[0] or col_idx >= matrix.shape[1]:
        return ""
    return matrix.iat[row_idx, col_idx]


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values."""
    if val is None:
        return None
    if isinstance(val, str):
        val = val.strip()
        if val.startswith("=") or not val:
            return None
        # Handle percentage strings like "98%"
        if val.endswith("%"):
            val = val[:-1].strip()
        # Decimal comma as written in the sheet ("12,5")
        if "," in val and "." not in val:
            val = val.replace(",", ".")
        try:
            return float(val)
        except ValueError:
            return None
    try:
        return float(val)
    except (ValueError, TypeError):
        return None
