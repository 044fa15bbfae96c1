"""
Data transforms: turn the parsed sheet Matrix into one DayCard per day column.

The sheet is wide: metric names down the metric column, one column per day.
Each day column is read top to bottom into a card holding the KPI tiles
(line TM, line TT, absence identifiers) and the remaining metrics.
"""

import logging
from datetime import date
from typing import Protocol

import pandas as pd

from .config import ABSENCE_SOURCE_RANGE, AuxiliaryRange, PipelineConfig
from .errors import InvalidHeaderRow, NoDateColumns
from .kpis import (
    is_absence_row,
    is_hidden_metric,
    is_line_tm,
    is_line_tt,
    kpi_value,
    merge_identifier_lists,
    parse_identifier_list,
)
from .loaders.utils import cell, normalise_metric_name, parse_day_label
from .models import DayCard, DayColumn, DayKpis, MetricEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Day columns
# ---------------------------------------------------------------------------

def classify_day_columns(
    header_row: list[str],
    metric_col_idx: int,
    today: date | None = None,
) -> list[DayColumn]:
    """Find the columns of the header row that carry a calendar day.

    Labels without a year ("01/02") take the year of `today` (defaults to
    the current date). Cells that are not day labels are skipped; a label
    that looks like a day but is impossible raises InvalidDate.

    Raises
    ------
    NoDateColumns if no cell of the header row is a day label.
    """
    default_year = (today or date.today()).year

    day_columns = []
    for col_idx, label in enumerate(header_row):
        if col_idx == metric_col_idx:
            continue
        label = str(label or "").strip()
        day = parse_day_label(label, default_year)
        if day is None:
            continue
        day_columns.append(DayColumn(column_index=col_idx, date=day, raw_label=label))

    if not day_columns:
        raise NoDateColumns(
            "No day columns found in the header row. Check the header row "
            "setting and that the header holds labels like 01/02, 02/02."
        )

    logger.info("Classified %d day columns", len(day_columns))
    return day_columns


def header_row_cells(matrix: pd.DataFrame, header_row_idx: int) -> list[str]:
    """Return the header row as a list, raising InvalidHeaderRow if it is missing."""
    if header_row_idx < 0 or header_row_idx >= matrix.shape[0]:
        raise InvalidHeaderRow(
            f"Header row {header_row_idx + 1} does not exist "
            f"(the sheet has {matrix.shape[0]} rows)"
        )
    return matrix.iloc[header_row_idx].tolist()


# ---------------------------------------------------------------------------
# Absence identifier sources
# ---------------------------------------------------------------------------

class AbsenceSource(Protocol):
    """Strategy that recovers the absence identifiers of one day column."""

    def absence_ids(
        self,
        matrix: pd.DataFrame,
        metric_col_idx: int,
        data_start_idx: int,
        column_index: int,
    ) -> tuple[str, ...]: ...


class NameDrivenAbsenceSource:
    """Read identifiers from the row named like "Legajo inasistencias".

    When several rows match, the lowest one wins.
    """

    def absence_ids(
        self,
        matrix: pd.DataFrame,
        metric_col_idx: int,
        data_start_idx: int,
        column_index: int,
    ) -> tuple[str, ...]:
        ids: tuple[str, ...] = ()
        for row_idx in range(data_start_idx, matrix.shape[0]):
            name = cell(matrix, row_idx, metric_col_idx)
            if name and is_absence_row(normalise_metric_name(name)):
                ids = parse_identifier_list(cell(matrix, row_idx, column_index))
        return ids


class RangeAbsenceSource:
    """Read identifiers from a fixed block of the sheet, ignoring metric names.

    Some sheets list absent employees in a block below the metrics, one or
    more per cell, with no label row to match. Columns outside the block
    have no identifiers.
    """

    def __init__(self, aux_range: AuxiliaryRange):
        self.aux_range = aux_range

    def absence_ids(
        self,
        matrix: pd.DataFrame,
        metric_col_idx: int,
        data_start_idx: int,
        column_index: int,
    ) -> tuple[str, ...]:
        if not self.aux_range.contains_column(column_index):
            return ()

        last_row = min(self.aux_range.row_end, matrix.shape[0])
        found = [
            parse_identifier_list(cell(matrix, row_idx, column_index))
            for row_idx in range(self.aux_range.row_start - 1, last_row)
        ]
        return merge_identifier_lists(*found)


def absence_source_for(config: PipelineConfig) -> AbsenceSource:
    if config.absence_source == ABSENCE_SOURCE_RANGE:
        return RangeAbsenceSource(config.aux_range)
    return NameDrivenAbsenceSource()


# ---------------------------------------------------------------------------
# Day cards
# ---------------------------------------------------------------------------

def build_day_card(
    matrix: pd.DataFrame,
    metric_col_idx: int,
    data_start_idx: int,
    day_column: DayColumn,
    absence_source: AbsenceSource | None = None,
) -> DayCard:
    """Reduce one day column of the Matrix to a DayCard.

    Rules (per row, top to bottom, rows without a metric name skipped)
    -----
    - name contains "linea tm" -> line_tm tile (last match wins).
    - name contains "linea tt" -> line_tt tile (last match wins).
    - name is exactly "linea tm"/"linea tt", or mentions both "legajo" and
      "inasist" -> kept out of the table.
    - everything else -> table entry (name, value) as written in the sheet.

    Absence identifiers come from `absence_source` (name-driven by default).
    """
    if absence_source is None:
        absence_source = NameDrivenAbsenceSource()

    col_idx = day_column.column_index
    line_tm = kpi_value("")
    line_tt = kpi_value("")
    table = []

    for row_idx in range(data_start_idx, matrix.shape[0]):
        name = cell(matrix, row_idx, metric_col_idx)
        if not name:
            continue
        value = cell(matrix, row_idx, col_idx)
        normalised = normalise_metric_name(name)

        if is_line_tm(normalised):
            line_tm = kpi_value(value)
        if is_line_tt(normalised):
            line_tt = kpi_value(value)
        if not is_hidden_metric(normalised):
            table.append(MetricEntry(name=name, value=value))

    absence_ids = absence_source.absence_ids(matrix, metric_col_idx, data_start_idx, col_idx)

    return DayCard(
        date=day_column.date,
        raw_label=day_column.raw_label,
        column_index=col_idx,
        kpis=DayKpis(line_tm=line_tm, line_tt=line_tt, absence_ids=absence_ids),
        table=tuple(table),
    )


def build_day_cards(
    matrix: pd.DataFrame,
    config: PipelineConfig,
    today: date | None = None,
) -> tuple[DayCard, ...]:
    """Build one DayCard per day column, in sheet column order.

    Raises
    ------
    InvalidHeaderRow, NoDateColumns, InvalidDate.
    """
    header = header_row_cells(matrix, config.header_row_idx)
    day_columns = classify_day_columns(header, config.metric_col_idx, today=today)
    source = absence_source_for(config)

    cards = tuple(
        build_day_card(matrix, config.metric_col_idx, config.data_start_idx, dc, source)
        for dc in day_columns
    )
    logger.info("Built %d day cards", len(cards))
    return cards
