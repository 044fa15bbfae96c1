"""
Immutable records passed between pipeline stages.

The Matrix itself is a pandas DataFrame of strings (see loaders.csv_matrix);
everything derived from it is a frozen dataclass so a result can be handed
to a renderer without defensive copies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from .config import KPI_PLACEHOLDER
from .errors import LineaDashboardError

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class DayColumn:
    column_index: int
    date: date
    raw_label: str


@dataclass(frozen=True)
class MetricEntry:
    name: str
    value: str


@dataclass(frozen=True)
class DayKpis:
    line_tm: str = KPI_PLACEHOLDER
    line_tt: str = KPI_PLACEHOLDER
    absence_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class DayCard:
    date: date
    raw_label: str
    column_index: int
    kpis: DayKpis
    table: tuple[MetricEntry, ...] = ()

    @property
    def label(self) -> str:
        """Display label, dd/mm/yyyy."""
        return self.date.strftime("%d/%m/%Y")


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one ingestion cycle.

    status is "ok" when the window has cards, "empty" when the sheet parsed
    but no day qualifies, and "error" when retrieval or parsing failed. An
    error result never carries cards.
    """

    status: str
    cards: tuple[DayCard, ...] = ()
    window: tuple[DayCard, ...] = ()
    anchor: date | None = None
    error: LineaDashboardError | None = None
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @classmethod
    def failed(cls, error: LineaDashboardError) -> "PipelineResult":
        return cls(status=STATUS_ERROR, error=error)
