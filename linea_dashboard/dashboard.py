"""
Dashboard-ready output functions.

These are the entry points for a Streamlit front end (or any other
renderer). Each function returns plain dicts, tuples of DayCard, or
DataFrames suitable for rendering cards, tables and trend charts.
"""

import logging
from datetime import date, timedelta

import pandas as pd

from .config import KPI_PLACEHOLDER
from .loaders.utils import safe_float
from .models import STATUS_EMPTY, STATUS_ERROR, DayCard, PipelineResult

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    STATUS_EMPTY: "No day with data up to today in the configured window.",
    STATUS_ERROR: "The sheet could not be loaded.",
}


def select_window(
    cards,
    window_days: int,
    today: date | None = None,
) -> tuple[DayCard, ...]:
    """Cards of the trailing window ending on the anchor day, newest first.

    Logic
    -----
    - Future days (after `today`) never qualify.
    - anchor = latest qualifying day; floor = anchor - window_days.
    - Days in [floor, anchor] are returned, newest first. Duplicate dates
      keep their sheet column order.

    Returns an empty tuple when no card qualifies. `cards` is not modified.
    """
    if today is None:
        today = date.today()
    cards = list(cards)
    if not cards:
        return ()

    frame = pd.DataFrame({
        "date": [c.date for c in cards],
        "position": range(len(cards)),
    })
    frame = frame[frame["date"] <= today]
    if frame.empty:
        logger.warning("No day on or before %s", today)
        return ()

    anchor = frame["date"].max()
    floor = anchor - timedelta(days=window_days)

    in_window = frame[(frame["date"] >= floor) & (frame["date"] <= anchor)]
    in_window = in_window.sort_values(
        ["date", "position"], ascending=[False, True], kind="stable"
    )
    return tuple(cards[i] for i in in_window["position"])


def window_anchor(window) -> date | None:
    """Anchor day of a window (its first, newest card)."""
    return window[0].date if window else None


def card_search_blob(card: DayCard) -> str:
    """Lower-cased text a search box is matched against."""
    parts = [card.raw_label, card.label, card.kpis.line_tm, card.kpis.line_tt]
    parts.extend(card.kpis.absence_ids)
    parts.extend(f"{m.name} {m.value}" for m in card.table)
    return " | ".join(parts).lower()


def filter_cards(cards, query: str) -> tuple[DayCard, ...]:
    """Cards whose search blob contains `query` (case-insensitive)."""
    q = (query or "").strip().lower()
    if not q:
        return tuple(cards)
    return tuple(c for c in cards if q in card_search_blob(c))


def card_summary(card: DayCard) -> dict:
    """Counts shown on the card header: metrics with a value, total, top two."""
    with_value = [m for m in card.table if m.value.strip()]
    top = ", ".join(m.name for m in with_value[:2])
    return {
        "with_value": len(with_value),
        "total": len(card.table),
        "top": top or KPI_PLACEHOLDER,
    }


def card_to_dict(card: DayCard) -> dict:
    return {
        "date": card.date.isoformat(),
        "label": card.label,
        "raw_label": card.raw_label,
        "kpis": {
            "line_tm": card.kpis.line_tm,
            "line_tt": card.kpis.line_tt,
            "absence_ids": list(card.kpis.absence_ids),
        },
        "summary": card_summary(card),
        "table": [{"name": m.name, "value": m.value} for m in card.table],
    }


def get_window_overview(result: PipelineResult, query: str = "") -> dict:
    """Single entry point a renderer would call to populate the card grid.

    Returns
    -------
    Dict with structure:
    {
        "status": "ok" | "empty" | "error",
        "message": str | None,
        "error_kind": str | None,
        "anchor": "2024-02-02" | None,
        "total_days": int,
        "cards": [card_to_dict(...), ...],   # after the search filter
    }
    """
    message = STATUS_MESSAGES.get(result.status)
    error_kind = None
    if result.error is not None:
        error_kind = result.error.kind
        message = f"{message} {result.error}"

    visible = filter_cards(result.window, query)
    if result.ok and query and not visible:
        message = "No cards match that search."

    return {
        "status": result.status,
        "message": message,
        "error_kind": error_kind,
        "anchor": result.anchor.isoformat() if result.anchor else None,
        "total_days": len(result.cards),
        "cards": [card_to_dict(c) for c in visible],
    }


def get_kpi_trend(cards) -> pd.DataFrame:
    """KPI values per day, oldest first, for trend charts.

    Returns
    -------
    DataFrame with columns: date, line_tm, line_tt, absences
    line_tm/line_tt are floats (NaN where the tile holds text or the
    placeholder); absences is the count of identifiers.
    """
    rows = [
        {
            "date": pd.Timestamp(c.date),
            "line_tm": safe_float(c.kpis.line_tm),
            "line_tt": safe_float(c.kpis.line_tt),
            "absences": len(c.kpis.absence_ids),
        }
        for c in cards
    ]
    if not rows:
        return pd.DataFrame(columns=["date", "line_tm", "line_tt", "absences"])

    df = pd.DataFrame(rows).sort_values("date", kind="stable").reset_index(drop=True)
    for col in ("line_tm", "line_tt"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df
