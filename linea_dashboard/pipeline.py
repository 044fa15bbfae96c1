"""
Ingestion cycle: raw text -> Matrix -> day cards -> window.

run_pipeline is synchronous and pure: it takes an already received text
blob and returns a fresh PipelineResult. RefreshController wraps it with
retrieval and keeps the last good result for the caller.
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable

import pandas as pd

from .config import PipelineConfig
from .dashboard import select_window, window_anchor
from .errors import LineaDashboardError, RetrievalCancelled
from .loaders.csv_matrix import parse_csv_to_matrix
from .loaders.sheet_fetch import CancellationToken
from .models import STATUS_EMPTY, STATUS_ERROR, STATUS_OK, PipelineResult
from .transforms import build_day_cards

logger = logging.getLogger(__name__)


def run_matrix(
    matrix: pd.DataFrame,
    config: PipelineConfig,
    today: date | None = None,
) -> PipelineResult:
    """Build cards and the trailing window from a parsed Matrix.

    Raises
    ------
    InvalidHeaderRow, NoDateColumns, InvalidDate. No partial result is
    returned on error.
    """
    if today is None:
        today = date.today()

    cards = build_day_cards(matrix, config, today=today)
    window = select_window(cards, config.window_days, today=today)

    return PipelineResult(
        status=STATUS_OK if window else STATUS_EMPTY,
        cards=cards,
        window=window,
        anchor=window_anchor(window),
    )


def run_pipeline(
    raw_text: str,
    config: PipelineConfig,
    today: date | None = None,
) -> PipelineResult:
    """Run parse -> classify -> reduce -> window over one text blob.

    Raises
    ------
    MalformedInput plus everything run_matrix raises.
    """
    matrix = parse_csv_to_matrix(raw_text)
    return run_matrix(matrix, config, today=today)


def ingest_text(
    raw_text: str,
    config: PipelineConfig,
    today: date | None = None,
) -> PipelineResult:
    """Like run_pipeline, but pipeline errors become an "error" result."""
    try:
        result = run_pipeline(raw_text, config, today=today)
    except LineaDashboardError as exc:
        logger.warning("Ingestion failed (%s): %s", exc.kind, exc)
        return PipelineResult.failed(exc)

    logger.info(
        "Ingestion finished: %d day(s), %d in window, anchor %s",
        len(result.cards), len(result.window), result.anchor,
    )
    return result


Fetcher = Callable[[CancellationToken], Awaitable[str]]


class RefreshController:
    """Runs ingestion cycles without letting them overlap.

    A new refresh cancels the retrieval of any cycle still in flight. The
    cancelled cycle produces no result, so `last_good` only ever changes
    when a cycle completes successfully.
    """

    def __init__(
        self,
        fetch: Fetcher,
        config: PipelineConfig,
        today: Callable[[], date] | None = None,
    ):
        self.fetch = fetch
        self.config = config
        self.today = today or date.today
        self.last_result: PipelineResult | None = None
        self.last_good: PipelineResult | None = None
        self._token: CancellationToken | None = None

    async def refresh(self) -> PipelineResult | None:
        """Run one cycle. Returns None if a newer refresh superseded it."""
        if self._token is not None:
            self._token.cancel()
        token = CancellationToken()
        self._token = token

        try:
            raw_text = await self.fetch(token)
            token.raise_if_cancelled()
        except RetrievalCancelled:
            logger.info("Refresh superseded before the sheet arrived")
            return None
        except LineaDashboardError as exc:
            if token.cancelled:
                logger.info("Refresh superseded, dropping its failure: %s", exc)
                return None
            logger.warning("Retrieval failed (%s): %s", exc.kind, exc)
            result = PipelineResult.failed(exc)
        else:
            result = ingest_text(raw_text, self.config, today=self.today())
        finally:
            if self._token is token:
                self._token = None

        self.last_result = result
        if result.status != STATUS_ERROR:
            self.last_good = result
        return result

    async def refresh_every(self, interval_seconds: float, cycles: int | None = None):
        """Refresh on a fixed interval; `cycles` bounds the loop (None = forever)."""
        done = 0
        while cycles is None or done < cycles:
            await self.refresh()
            done += 1
            if cycles is None or done < cycles:
                await asyncio.sleep(interval_seconds)
