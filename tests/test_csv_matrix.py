import pytest

from linea_dashboard.errors import MalformedInput
from linea_dashboard.loaders.csv_matrix import (
    load_matrix_from_path,
    parse_csv_to_matrix,
    serialize_matrix,
)


def _rows(matrix):
    return matrix.values.tolist()


def test_plain_rows_are_split_and_trimmed():
    matrix = parse_csv_to_matrix("a, b ,c\n 1,2 , 3\n")
    assert _rows(matrix) == [["a", "b", "c"], ["1", "2", "3"]]


def test_quoted_field_keeps_delimiter_and_newline():
    matrix = parse_csv_to_matrix('name,note\nx,"one, two\nthree"\n')
    assert _rows(matrix) == [["name", "note"], ["x", "one, two\nthree"]]


def test_doubled_quote_inside_quotes_is_literal():
    matrix = parse_csv_to_matrix('"say ""hi""",b')
    assert _rows(matrix) == [['say "hi"', "b"]]


def test_quote_mid_field_toggles_without_being_emitted():
    matrix = parse_csv_to_matrix('ab"c,d"e,f')
    assert _rows(matrix) == [["abc,de", "f"]]


def test_carriage_returns_are_dropped_everywhere():
    matrix = parse_csv_to_matrix('a,b\r\n"x\ry",z\r\n')
    assert _rows(matrix) == [["a", "b"], ["xy", "z"]]


def test_last_row_flushed_without_trailing_newline():
    matrix = parse_csv_to_matrix("a,b\nc,d")
    assert _rows(matrix) == [["a", "b"], ["c", "d"]]


def test_trailing_blank_line_is_dropped():
    matrix = parse_csv_to_matrix("a,b\nc,d\n\n")
    assert matrix.shape == (2, 2)


def test_ragged_rows_are_padded_with_empty_cells():
    matrix = parse_csv_to_matrix("a,b,c\nd\ne,f\n")
    assert _rows(matrix) == [["a", "b", "c"], ["d", "", ""], ["e", "f", ""]]


@pytest.mark.parametrize("text", ["", "   ", "\r\n\t\n", "\ufeff\n"])
def test_empty_text_is_malformed(text):
    with pytest.raises(MalformedInput):
        parse_csv_to_matrix(text)


def test_serialize_then_parse_keeps_cell_values(sample_matrix):
    again = parse_csv_to_matrix(serialize_matrix(sample_matrix))
    assert _rows(again) == _rows(sample_matrix)


def test_serialize_quotes_only_when_needed():
    matrix = parse_csv_to_matrix('plain,"a,b","q""q"')
    assert serialize_matrix(matrix) == 'plain,"a,b","q""q"\n'


def test_load_matrix_from_csv_path_strips_bom(tmp_path, sample_csv):
    path = tmp_path / "export.csv"
    path.write_text("\ufeff" + sample_csv, encoding="utf-8")
    matrix = load_matrix_from_path(str(path))
    assert matrix.iat[0, 0] == "Métrica"
    assert matrix.iat[1, 1] == "10"
