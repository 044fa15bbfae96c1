from datetime import date, datetime

import openpyxl
import pytest

from linea_dashboard.config import PipelineConfig
from linea_dashboard.errors import MalformedInput
from linea_dashboard.loaders.csv_matrix import load_matrix_from_path
from linea_dashboard.loaders.workbook import load_matrix_from_workbook
from linea_dashboard.pipeline import run_matrix


def _write_workbook(path, rows, title="Diario"):
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(row)
    wb.save(path)


def test_workbook_dates_and_numbers_become_text(tmp_path):
    path = tmp_path / "diario.xlsx"
    _write_workbook(path, [
        ["Métrica", datetime(2024, 2, 1), "02/02"],
        ["Linea TM", 10.0, 12],
        ["Presentismo", "97%", None],
    ])

    matrix = load_matrix_from_workbook(str(path))
    assert matrix.values.tolist() == [
        ["Métrica", "2024-02-01", "02/02"],
        ["Linea TM", "10", "12"],
        ["Presentismo", "97%", ""],
    ]


def test_workbook_feeds_the_pipeline(tmp_path):
    path = tmp_path / "diario.xlsx"
    _write_workbook(path, [
        ["Métrica", date(2024, 2, 1), date(2024, 2, 2)],
        ["Linea TT", 8, 9],
        ["Legajo inasistencias", "4501 4502", None],
    ])

    matrix = load_matrix_from_path(str(path))
    result = run_matrix(matrix, PipelineConfig(window_days=6), today=date(2024, 2, 2))

    assert [c.kpis.line_tt for c in result.window] == ["9", "8"]
    assert result.window[1].kpis.absence_ids == ("4501", "4502")


def test_unknown_sheet_falls_back_to_first(tmp_path):
    path = tmp_path / "diario.xlsx"
    _write_workbook(path, [["Métrica", "01/02"]])
    matrix = load_matrix_from_workbook(str(path), sheet_name="Otra")
    assert matrix.iat[0, 1] == "01/02"


def test_empty_workbook_is_malformed(tmp_path):
    path = tmp_path / "vacio.xlsx"
    _write_workbook(path, [])
    with pytest.raises(MalformedInput):
        load_matrix_from_workbook(str(path))
