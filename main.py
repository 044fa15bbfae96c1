"""
Daily Line Dashboard — one ingestion cycle from the command line.

Loads the sheet (published Google Sheet, local CSV/XLSX, or synthetic demo
data), builds the day cards and prints the trailing window.

Usage:
    python main.py --demo
    python main.py --csv export.csv --today 2024-02-02
    python main.py --url "https://docs.google.com/spreadsheets/d/<id>/edit" --gid 0
"""

import argparse
import asyncio
import logging
import sys
from datetime import date, timedelta

from linea_dashboard.config import DEFAULT_GID, DEFAULT_SHEET_URL, normalize_config
from linea_dashboard.dashboard import card_summary, filter_cards, get_window_overview
from linea_dashboard.errors import LineaDashboardError
from linea_dashboard.loaders import SheetClient, extract_spreadsheet_id, load_matrix_from_path
from linea_dashboard.models import PipelineResult
from linea_dashboard.pipeline import ingest_text, run_matrix
from linea_dashboard.simulator import generate_sheet_csv

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build daily line cards from a sheet export.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--url", default=None, help="Google Sheet URL (default: configured sheet)")
    source.add_argument("--csv", default=None, help="Local .csv or .xlsx export")
    source.add_argument("--demo", action="store_true", help="Use synthetic data")
    parser.add_argument("--gid", default=DEFAULT_GID, help="Sheet tab id")
    parser.add_argument("--header-row", type=int, default=None, help="Row with the day labels (1-based)")
    parser.add_argument("--metric-col", type=int, default=None, help="Column with metric names (1-based)")
    parser.add_argument("--window-days", type=int, default=None, help="Trailing days before the anchor day")
    parser.add_argument("--aux-rows", type=int, nargs=2, metavar=("START", "END"), default=None,
                        help="Rows of the fixed absence-identifier block (1-based)")
    parser.add_argument("--aux-cols", type=int, nargs=2, metavar=("START", "END"), default=None,
                        help="Columns of the fixed absence-identifier block (1-based)")
    parser.add_argument("--absence-source", choices=["name", "range"], default=None)
    parser.add_argument("--today", type=date.fromisoformat, default=None,
                        help="Override today's date (YYYY-MM-DD)")
    parser.add_argument("--search", default="", help="Only show cards matching this text")
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace):
    raw = {
        "header_row": args.header_row,
        "metric_col": args.metric_col,
        "window_days": args.window_days,
        "absence_source": args.absence_source,
    }
    if args.aux_rows:
        raw["aux_row_start"], raw["aux_row_end"] = args.aux_rows
    if args.aux_cols:
        raw["aux_col_start"], raw["aux_col_end"] = args.aux_cols
    return normalize_config(raw)


async def _download(url: str, gid: str) -> str:
    async with SheetClient() as client:
        return await client.fetch_csv(extract_spreadsheet_id(url), gid)


def load_result(args: argparse.Namespace, config) -> PipelineResult:
    today = args.today or date.today()

    if args.csv:
        try:
            matrix = load_matrix_from_path(args.csv)
            return run_matrix(matrix, config, today=today)
        except LineaDashboardError as exc:
            logger.warning("Ingestion failed (%s): %s", exc.kind, exc)
            return PipelineResult.failed(exc)

    if args.demo:
        demo_csv = generate_sheet_csv(start=today - timedelta(days=11), days=14, blank_tail=2)
        return ingest_text(demo_csv, config, today=today)

    try:
        raw_text = asyncio.run(_download(args.url or DEFAULT_SHEET_URL, args.gid))
    except LineaDashboardError as exc:
        logger.warning("Retrieval failed (%s): %s", exc.kind, exc)
        return PipelineResult.failed(exc)
    return ingest_text(raw_text, config, today=today)


def main(argv=None) -> int:
    """Run one ingestion cycle and print the window."""
    args = parse_args(argv)
    try:
        config = _config_from_args(args)
    except LineaDashboardError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    print("=" * 70)
    print("  DAILY LINE DASHBOARD")
    print("=" * 70)

    result = load_result(args, config)
    overview = get_window_overview(result, args.search)

    if overview["status"] != "ok":
        print(f"\n[{overview['status'].upper()}] {overview['message']}")
        return 1 if overview["status"] == "error" else 0

    print(f"\nDays in sheet: {overview['total_days']}  |  Anchor: {overview['anchor']}")
    print(f"Cards in window: {len(overview['cards'])}")

    for card in filter_cards(result.window, args.search):
        summary = card_summary(card)
        ids = ", ".join(card.kpis.absence_ids) or "—"
        print("\n" + "-" * 40)
        print(f"  {card.label}  ({summary['with_value']}/{summary['total']} metrics with value)")
        print(f"  Línea TM: {card.kpis.line_tm:>6}   Línea TT: {card.kpis.line_tt:>6}")
        print(f"  Inasistencias: {ids}")
        for entry in card.table:
            print(f"    {entry.name:30s} {entry.value or '—'}")

    print("\n" + "=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
