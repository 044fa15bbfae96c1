"""
KPI matching rules — pure functions with no side effects.

Metric names are matched after normalisation (see
loaders.utils.normalise_metric_name), so "Línea TM" and "linea  tm" are the
same row.
"""

import logging
import re

from .config import (
    ABSENCE_LABEL_TERMS,
    KPI_PLACEHOLDER,
    LINE_TM_LABEL,
    LINE_TT_LABEL,
    MIN_IDENTIFIER_DIGITS,
)

logger = logging.getLogger(__name__)

_DIGIT_RUN = re.compile(r"\d+")


def parse_identifier_list(value: str) -> tuple[str, ...]:
    """Extract employee identifiers (legajos) from free text.

    Every maximal run of at least MIN_IDENTIFIER_DIGITS digits counts;
    shorter runs are noise (counts, day numbers). Duplicates are dropped and
    the result is sorted by numeric value.

    >>> parse_identifier_list("12, 345;6789 abc")
    ('345', '6789')
    """
    runs = {r for r in _DIGIT_RUN.findall(value or "") if len(r) >= MIN_IDENTIFIER_DIGITS}
    return tuple(sorted(runs, key=lambda r: (int(r), r)))


def merge_identifier_lists(*lists: tuple[str, ...]) -> tuple[str, ...]:
    """Union several identifier lists, keeping the dedup/numeric-order rule."""
    merged = {i for ids in lists for i in ids}
    return tuple(sorted(merged, key=lambda r: (int(r), r)))


def is_line_tm(normalised: str) -> bool:
    return LINE_TM_LABEL in normalised


def is_line_tt(normalised: str) -> bool:
    return LINE_TT_LABEL in normalised


def is_absence_row(normalised: str) -> bool:
    return all(term in normalised for term in ABSENCE_LABEL_TERMS)


def is_hidden_metric(normalised: str) -> bool:
    """Rows already shown as KPIs are left out of the full table.

    Only exact line labels are hidden; "linea tm total" still feeds the KPI
    but stays visible in the table.
    """
    return (
        normalised == LINE_TM_LABEL
        or normalised == LINE_TT_LABEL
        or is_absence_row(normalised)
    )


def kpi_value(value: str) -> str:
    """Return the value shown on a KPI tile, never empty."""
    value = (value or "").strip()
    return value if value else KPI_PLACEHOLDER
