from __future__ import annotations

import pytest

from csvinsight.data.loader import CsvLoader


def test_parse_basic_scenario() -> None:
    parsed = CsvLoader.parse("name,age,city\nJohn,30,Tokyo\nJane,25,Osaka")
    assert parsed.headers == ["name", "age", "city"]
    assert parsed.row_count == 2
    assert parsed.rows[1] == ["Jane", "25", "Osaka"]


@pytest.mark.parametrize("k", [0, 1, 5, 37])
def test_row_count_matches_data_lines(k: int) -> None:
    header = "a,b,c,d"
    text = "\n".join([header] + [f"{i},x,y,z" for i in range(k)])
    parsed = CsvLoader.parse(text)
    assert parsed.row_count == k
    assert len(parsed.headers) == len(header.split(","))


def test_cells_are_trimmed_and_crlf_removed() -> None:
    parsed = CsvLoader.parse("  a , b \r\n 1 ,2 \r\n")
    assert parsed.headers == ["a", "b"]
    assert parsed.rows == [["1", "2"]]


def test_ragged_rows_are_kept_and_read_positionally() -> None:
    parsed = CsvLoader.parse("a,b,c\n1,2\n1,2,3,4")
    assert parsed.rows[0] == ["1", "2"]
    assert parsed.rows[1] == ["1", "2", "3", "4"]


def test_simple_mode_splits_inside_quotes() -> None:
    parsed = CsvLoader.parse('name,city\n"Doe, John",Tokyo')
    assert parsed.rows[0] == ['"Doe', 'John"', "Tokyo"]


def test_quoted_mode_keeps_commas_inside_quotes() -> None:
    parsed = CsvLoader.parse('name,city\n"Doe, John", Tokyo', quoted=True)
    assert parsed.rows[0] == ["Doe, John", "Tokyo"]


def test_quoted_mode_unescapes_doubled_quotes() -> None:
    assert CsvLoader.split_quoted_line('"say ""hi""",x') == ['say "hi"', "x"]


@pytest.mark.parametrize("text", ["", "   ", "\n\n", None])
def test_empty_input_is_rejected(text) -> None:
    with pytest.raises(ValueError):
        CsvLoader.parse(text)


def test_to_csv_quotes_cells_that_need_it() -> None:
    text = CsvLoader.to_csv(["name", "note"], [["Doe, John", 'say "hi"'], ["Jane", "multi\nline"]])
    assert text.split("\n") == [
        "name,note",
        '"Doe, John","say ""hi"""',
        "Jane,multi line",
    ]
    parsed = CsvLoader.parse(text, quoted=True)
    assert parsed.rows[0] == ["Doe, John", 'say "hi"']


def test_decode_falls_back_to_latin1() -> None:
    assert CsvLoader.decode("café".encode("latin1")) == "café"
    assert CsvLoader.decode("\ufeffa,b".encode("utf-8")) == "a,b"
