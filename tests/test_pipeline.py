import asyncio
from datetime import date

import pytest

from linea_dashboard.config import PipelineConfig
from linea_dashboard.errors import (
    InvalidDate,
    MalformedInput,
    NoDateColumns,
    RetrievalFailure,
)
from linea_dashboard.pipeline import RefreshController, ingest_text, run_pipeline

END_TO_END_CSV = "Metrica,01/02,02/02\nLinea TM,10,12\nLegajo inasistencia,111 222,333\n"


def test_end_to_end_window():
    config = PipelineConfig(header_row=1, metric_col=1, window_days=1)
    result = run_pipeline(END_TO_END_CSV, config, today=date(2024, 2, 2))

    assert result.status == "ok"
    assert result.anchor == date(2024, 2, 2)
    newest, oldest = result.window

    assert newest.date == date(2024, 2, 2)
    assert newest.kpis.line_tm == "12"
    assert newest.kpis.absence_ids == ("333",)
    assert newest.table == ()

    assert oldest.date == date(2024, 2, 1)
    assert oldest.kpis.line_tm == "10"
    assert oldest.kpis.absence_ids == ("111", "222")
    assert oldest.table == ()


def test_linea_tm_hidden_and_presentismo_visible(config, today):
    raw = "Métrica,02/02\nLinea TM,45\nPresentismo,98%\n"
    (card,) = run_pipeline(raw, config, today=today).window
    assert card.kpis.line_tm == "45"
    assert [(m.name, m.value) for m in card.table] == [("Presentismo", "98%")]


def test_pipeline_is_idempotent(sample_csv, config, today):
    first = run_pipeline(sample_csv, config, today=today)
    second = run_pipeline(sample_csv, config, today=today)
    assert first.window == second.window
    assert first.cards == second.cards


def test_future_only_sheet_is_empty_not_error(config):
    result = ingest_text("Métrica,10/03\nLinea TM,4\n", config, today=date(2024, 3, 1))
    assert result.status == "empty"
    assert result.window == ()
    assert len(result.cards) == 1
    assert result.error is None


@pytest.mark.parametrize(
    "raw, error",
    [
        ("", MalformedInput),
        ("Métrica,Lunes\nLinea TM,4\n", NoDateColumns),
        ("Métrica,01/02,02/02,15/13\nLinea TM,1,2,3\n", InvalidDate),
    ],
)
def test_errors_are_all_or_nothing(raw, error, config, today):
    with pytest.raises(error):
        run_pipeline(raw, config, today=today)

    result = ingest_text(raw, config, today=today)
    assert result.status == "error"
    assert isinstance(result.error, error)
    assert result.cards == ()
    assert result.window == ()


# ---------------------------------------------------------------------------
# Refresh cycles
# ---------------------------------------------------------------------------

def _controller(fetch, config):
    return RefreshController(fetch, config, today=lambda: date(2024, 2, 2))


def test_failed_refresh_keeps_last_good(sample_csv, config):
    responses = [sample_csv, RetrievalFailure("HTTP 403")]

    async def fetch(token):
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    controller = _controller(fetch, config)

    async def run():
        good = await controller.refresh()
        bad = await controller.refresh()
        return good, bad

    good, bad = asyncio.run(run())
    assert good.status == "ok"
    assert bad.status == "error"
    assert bad.error.kind == "retrieval_failure"
    assert controller.last_result is bad
    assert controller.last_good is good


def test_new_refresh_supersedes_in_flight_one(sample_csv, config):
    release_first = None
    calls = []

    async def fetch(token):
        calls.append(token)
        if len(calls) == 1:
            await release_first.wait()
            token.raise_if_cancelled()
        return sample_csv

    controller = _controller(fetch, config)

    async def run():
        nonlocal release_first
        release_first = asyncio.Event()
        first = asyncio.ensure_future(controller.refresh())
        await asyncio.sleep(0)
        second = await controller.refresh()
        release_first.set()
        return await first, second

    first, second = asyncio.run(run())
    assert first is None
    assert calls[0].cancelled
    assert second.status == "ok"
    assert controller.last_good is second


def test_superseded_refresh_drops_its_failure(sample_csv, config):
    release_first = None
    calls = []

    async def fetch(token):
        calls.append(token)
        if len(calls) == 1:
            await release_first.wait()
            raise RetrievalFailure("HTTP 503 while downloading the sheet")
        return sample_csv

    controller = _controller(fetch, config)

    async def run():
        nonlocal release_first
        release_first = asyncio.Event()
        first = asyncio.ensure_future(controller.refresh())
        await asyncio.sleep(0)
        second = await controller.refresh()
        release_first.set()
        return await first, second

    first, second = asyncio.run(run())
    assert first is None
    assert second.status == "ok"
    assert controller.last_result is second
    assert controller.last_good is second


def test_refresh_every_runs_bounded_cycles(sample_csv, config):
    count = 0

    async def fetch(token):
        nonlocal count
        count += 1
        return sample_csv

    controller = _controller(fetch, config)
    asyncio.run(controller.refresh_every(0, cycles=3))
    assert count == 3
    assert controller.last_good.status == "ok"
