import pytest

from linea_dashboard.kpis import (
    is_absence_row,
    is_hidden_metric,
    is_line_tm,
    is_line_tt,
    kpi_value,
    merge_identifier_lists,
    parse_identifier_list,
)
from linea_dashboard.loaders.utils import normalise_metric_name


def test_parse_identifier_list_drops_short_runs():
    assert parse_identifier_list("12, 345;6789 abc") == ("345", "6789")


def test_parse_identifier_list_dedups_and_sorts_numerically():
    assert parse_identifier_list("345,345,12000") == ("345", "12000")


def test_parse_identifier_list_empty_values():
    assert parse_identifier_list("") == ()
    assert parse_identifier_list("sin faltas") == ()


def test_parse_identifier_list_takes_maximal_runs():
    # "1234567" is one identifier, not several
    assert parse_identifier_list("L-1234567/89") == ("1234567",)


def test_merge_identifier_lists():
    assert merge_identifier_lists(("900", "101"), ("101", "2000")) == ("101", "900", "2000")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Linea TM", "linea tm"),
        ("  Línea   TT ", "linea tt"),
        ("LEGAJO\tINASISTÉNCIAS", "legajo inasistencias"),
    ],
)
def test_normalise_metric_name(raw, expected):
    assert normalise_metric_name(raw) == expected


def test_line_matchers_use_substring():
    assert is_line_tm("linea tm total")
    assert is_line_tt("dotacion linea tt")
    assert not is_line_tm("linea t m")


def test_absence_row_needs_both_terms():
    assert is_absence_row("legajo inasistencias")
    assert is_absence_row("inasistencias (legajo)")
    assert not is_absence_row("legajo")
    assert not is_absence_row("inasistencias")


def test_hidden_metric_requires_exact_line_label():
    assert is_hidden_metric("linea tm")
    assert is_hidden_metric("linea tt")
    assert is_hidden_metric("legajos con inasistencia")
    assert not is_hidden_metric("linea tm total")
    assert not is_hidden_metric("presentismo")


def test_kpi_value_placeholder():
    assert kpi_value("45") == "45"
    assert kpi_value("  ") == "—"
    assert kpi_value("") == "—"
