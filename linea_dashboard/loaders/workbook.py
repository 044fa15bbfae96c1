"""
Loader for an .xlsx download of the daily sheet.

Produces the same Matrix as the CSV loader so the rest of the pipeline does
not care where the grid came from. Day headers typed as real dates in Excel
come back from openpyxl as datetime objects; they are rendered ISO
(YYYY-MM-DD) so the day-label parser recognises them.
"""

import logging
from datetime import date, datetime
from typing import Any

import openpyxl
import pandas as pd

from ..errors import MalformedInput

logger = logging.getLogger(__name__)


def _cell_text(val: Any) -> str:
    if val is None:
        return ""
    if isinstance(val, datetime):
        return val.date().isoformat()
    if isinstance(val, date):
        return val.isoformat()
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def load_matrix_from_workbook(path: str, sheet_name: str | None = None) -> pd.DataFrame:
    """Load one worksheet into a Matrix.

    Parameters
    ----------
    path : Path to the .xlsx file.
    sheet_name : Worksheet to read. Falls back to the first sheet when
                 missing or not found.

    Returns
    -------
    DataFrame of str, padded to the sheet's used range.
    """
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=True)
    except Exception:
        logger.exception("Failed to open workbook: %s", path)
        raise

    if sheet_name is None:
        sheet_name = wb.sheetnames[0]
    elif sheet_name not in wb.sheetnames:
        logger.warning("Sheet '%s' not found, using '%s'", sheet_name, wb.sheetnames[0])
        sheet_name = wb.sheetnames[0]

    ws = wb[sheet_name]
    rows = [[_cell_text(v) for v in row] for row in ws.iter_rows(values_only=True)]
    wb.close()

    # Drop trailing blank rows left by formatting
    while rows and not any(rows[-1]):
        rows.pop()

    if not rows:
        raise MalformedInput(f"Worksheet '{sheet_name}' in {path} is empty")

    width = max(len(r) for r in rows)
    padded = [r + [""] * (width - len(r)) for r in rows]
    matrix = pd.DataFrame(padded, dtype=str)

    logger.info(
        "Loaded %d rows x %d columns from %s [%s]",
        matrix.shape[0], matrix.shape[1], path, sheet_name,
    )
    return matrix
