"""Data ingestion loaders for the daily line sheet."""

from .csv_matrix import load_matrix_from_path, parse_csv_to_matrix, serialize_matrix
from .sheet_fetch import CancellationToken, SheetClient
from .sheet_fetch import build_export_url, extract_spreadsheet_id
from .workbook import load_matrix_from_workbook

__all__ = [
    "parse_csv_to_matrix",
    "serialize_matrix",
    "load_matrix_from_path",
    "load_matrix_from_workbook",
    "CancellationToken",
    "SheetClient",
    "build_export_url",
    "extract_spreadsheet_id",
]
