"""
Loader for the CSV export of the daily sheet.

The export is a plain comma-separated grid: metric names down one column,
one column per day. Cells may be quoted, with doubled quotes as escapes and
embedded commas/newlines. The grid is returned as a rectangular DataFrame
of trimmed strings (ragged rows padded with "").
"""

import logging
from pathlib import Path

import pandas as pd

from ..errors import MalformedInput

logger = logging.getLogger(__name__)

DELIMITER = ","
QUOTE = '"'

# Whitespace and other control characters that do not count as content
_BLANK = "".join(chr(c) for c in range(33)) + "\x7f\ufeff"


def _split_rows(text: str) -> list[list[str]]:
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == QUOTE and in_quotes and i + 1 < n and text[i + 1] == QUOTE:
            field.append(QUOTE)
            i += 2
            continue
        if ch == QUOTE:
            in_quotes = not in_quotes
        elif ch == DELIMITER and not in_quotes:
            row.append("".join(field))
            field = []
        elif ch == "\n" and not in_quotes:
            row.append("".join(field))
            rows.append(row)
            row, field = [], []
        elif ch != "\r":
            field.append(ch)
        i += 1

    row.append("".join(field))
    rows.append(row)
    return rows


def parse_csv_to_matrix(text: str) -> pd.DataFrame:
    """Parse raw CSV text into a Matrix.

    Assumptions
    -----------
    - Delimiter is a comma, quote character is a double quote.
    - A doubled quote inside a quoted field is one literal quote.
    - Carriage returns are dropped everywhere (CRLF and CR-in-field alike).
    - The trailing row created by a final newline is not data.

    Returns
    -------
    DataFrame of str with a RangeIndex on both axes. Every cell is trimmed.

    Raises
    ------
    MalformedInput if the text is empty once whitespace/control characters
    are stripped.
    """
    if text is None or not str(text).strip(_BLANK):
        raise MalformedInput("The sheet export is empty")

    text = str(text).lstrip("\ufeff")
    rows = _split_rows(text)

    # A terminating newline leaves a single empty cell behind
    while rows and rows[-1] == [""]:
        rows.pop()
    if not rows:
        raise MalformedInput("The sheet export has no rows")

    width = max(len(r) for r in rows)
    padded = [[c.strip() for c in r] + [""] * (width - len(r)) for r in rows]

    matrix = pd.DataFrame(padded, dtype=str)
    logger.info("Parsed CSV into %d rows x %d columns", matrix.shape[0], matrix.shape[1])
    return matrix


def _quote_field(value: str) -> str:
    if any(ch in value for ch in (DELIMITER, QUOTE, "\n", "\r")):
        return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
    return value


def serialize_matrix(matrix: pd.DataFrame) -> str:
    """Write a Matrix back to CSV text using the same quoting rules."""
    lines = []
    for row in matrix.itertuples(index=False):
        lines.append(DELIMITER.join(_quote_field(str(v)) for v in row))
    return "\n".join(lines) + "\n"


def load_matrix_from_path(path: str) -> pd.DataFrame:
    """Load a local export (.csv or .xlsx) into a Matrix."""
    path = Path(path)
    if path.suffix.lower() in (".xlsx", ".xlsm"):
        from .workbook import load_matrix_from_workbook

        return load_matrix_from_workbook(str(path))

    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError:
        logger.exception("Failed to read CSV export: %s", path)
        raise

    matrix = parse_csv_to_matrix(text)
    logger.info("Loaded %d rows from %s", matrix.shape[0], path)
    return matrix
