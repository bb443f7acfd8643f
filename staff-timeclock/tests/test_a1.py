import pytest

from services.a1 import a1, column_index, column_letter, parse_range, row_range


def test_column_letters():
    assert column_letter(0) == "A"
    assert column_letter(10) == "K"
    assert column_letter(26) == "AA"
    assert column_index("K") == 10
    assert column_index("aa") == 26


def test_build_ranges():
    assert a1("Dashboard", "A", 2, "K") == "'Dashboard'!A2:K"
    assert a1("Dashboard", "A", None, "K") == "'Dashboard'!A:K"
    assert a1("Lisa", "C", 7) == "'Lisa'!C7"
    assert row_range("Dashboard", "F", "J", 12) == "'Dashboard'!F12:J12"


def test_sheet_title_quotes_are_escaped():
    assert a1("Conor O'Neil", "A", 2, "C") == "'Conor O''Neil'!A2:C"
    assert parse_range("'Conor O''Neil'!A2:C").sheet == "Conor O'Neil"


def test_parse_open_ended_range():
    rng = parse_range("'Staff Roster'!A2:E")
    assert rng.sheet == "Staff Roster"
    assert (rng.start_col, rng.start_row, rng.end_col, rng.end_row) == (0, 2, 4, None)


def test_parse_single_cell_and_unquoted():
    rng = parse_range("Dashboard!J57")
    assert rng.sheet == "Dashboard"
    assert (rng.start_col, rng.start_row, rng.end_col, rng.end_row) == (9, 57, 9, 57)


def test_parse_appended_range_from_api():
    """append のレスポンス (updatedRange) から行番号を得られること"""
    assert parse_range("Dashboard!A57:K57").start_row == 57


def test_parse_whole_sheet():
    rng = parse_range("'Break Log'")
    assert rng.sheet == "Break Log"
    assert rng.start_row is None


def test_parse_invalid():
    with pytest.raises(ValueError):
        parse_range("'Unterminated!A1")
