"""
Configuration: sheet location, layout defaults, KPI matching rules, constants.

The sheet layout is described with 1-based row/column numbers, the way the
people maintaining the spreadsheet read it. Conversion to 0-based indices
happens in PipelineConfig.
"""

from dataclasses import dataclass
from typing import Any

from .errors import ConfigError

# ---------------------------------------------------------------------------
# Sheet location: adjust these if the source sheet moves
# ---------------------------------------------------------------------------
DEFAULT_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/"
    "120WSaF1Zu6h4-Edid-Yc7GIWKwtQB61GQ3rNexH-MXc/edit?gid=0#gid=0"
)
DEFAULT_GID = "0"
EXPORT_URL_TEMPLATE = (
    "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv&gid={gid}"
)

# ---------------------------------------------------------------------------
# Sheet layout
# ---------------------------------------------------------------------------
DEFAULT_HEADER_ROW = 1  # row holding the day labels (1-based)
DEFAULT_METRIC_COL = 1  # column holding the metric names (A=1)
DEFAULT_WINDOW_DAYS = 6  # trailing days shown before the anchor day

# Absence identifier strategies
ABSENCE_SOURCE_NAME = "name"
ABSENCE_SOURCE_RANGE = "range"
ABSENCE_SOURCES = {ABSENCE_SOURCE_NAME, ABSENCE_SOURCE_RANGE}

# ---------------------------------------------------------------------------
# KPI matching (applied to normalised metric names)
# ---------------------------------------------------------------------------
LINE_TM_LABEL = "linea tm"
LINE_TT_LABEL = "linea tt"
ABSENCE_LABEL_TERMS = ("legajo", "inasist")

KPI_PLACEHOLDER = "—"
MIN_IDENTIFIER_DIGITS = 3

# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------
REQUEST_TIMEOUT_SECONDS = 30.0
CACHE_TTL_SECONDS = 300


@dataclass(frozen=True)
class AuxiliaryRange:
    """Fixed block of the sheet scanned for absence identifiers (1-based, inclusive)."""

    row_start: int
    row_end: int
    col_start: int
    col_end: int

    def contains_column(self, column_index: int) -> bool:
        """True if the 0-based column index falls inside col_start..col_end."""
        return self.col_start - 1 <= column_index <= self.col_end - 1


@dataclass(frozen=True)
class PipelineConfig:
    header_row: int = DEFAULT_HEADER_ROW
    metric_col: int = DEFAULT_METRIC_COL
    window_days: int = DEFAULT_WINDOW_DAYS
    aux_range: AuxiliaryRange | None = None
    absence_source: str = ABSENCE_SOURCE_NAME

    @property
    def header_row_idx(self) -> int:
        return self.header_row - 1

    @property
    def metric_col_idx(self) -> int:
        return self.metric_col - 1

    @property
    def data_start_idx(self) -> int:
        return self.header_row


def _positive_int(raw: dict, key: str, default: int | None) -> int | None:
    value = raw.get(key, default)
    if value is None or value == "":
        return default
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    if value < 1:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def normalize_config(raw: dict[str, Any] | None = None) -> PipelineConfig:
    """Coerce a plain mapping (CLI args, UI widgets) into a PipelineConfig.

    Missing keys fall back to the module defaults. The auxiliary range is
    only built when all four bounds are present; a partially specified range
    is rejected. When no absence_source is given, a configured range selects
    the range strategy.
    """
    raw = raw or {}

    header_row = _positive_int(raw, "header_row", DEFAULT_HEADER_ROW)
    metric_col = _positive_int(raw, "metric_col", DEFAULT_METRIC_COL)
    window_days = _positive_int(raw, "window_days", DEFAULT_WINDOW_DAYS)

    bounds = {
        key: _positive_int(raw, key, None)
        for key in ("aux_row_start", "aux_row_end", "aux_col_start", "aux_col_end")
    }
    provided = [v for v in bounds.values() if v is not None]
    aux_range = None
    if provided and len(provided) < len(bounds):
        missing = sorted(k for k, v in bounds.items() if v is None)
        raise ConfigError(f"Auxiliary range is incomplete, missing: {', '.join(missing)}")
    if provided:
        aux_range = AuxiliaryRange(
            row_start=bounds["aux_row_start"],
            row_end=bounds["aux_row_end"],
            col_start=bounds["aux_col_start"],
            col_end=bounds["aux_col_end"],
        )

    absence_source = (raw.get("absence_source") or "").strip().lower()
    if not absence_source:
        absence_source = ABSENCE_SOURCE_RANGE if aux_range else ABSENCE_SOURCE_NAME
    if absence_source not in ABSENCE_SOURCES:
        raise ConfigError(
            f"absence_source must be one of {sorted(ABSENCE_SOURCES)}, got {absence_source!r}"
        )
    if absence_source == ABSENCE_SOURCE_RANGE and aux_range is None:
        raise ConfigError("absence_source 'range' requires the auxiliary range bounds")

    return PipelineConfig(
        header_row=header_row,
        metric_col=metric_col,
        window_days=window_days,
        aux_range=aux_range,
        absence_source=absence_source,
    )
