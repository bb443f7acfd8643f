"""A1記法のレンジ生成・解析

シート名は常にシングルクォートで囲む（内部の ' は '' にエスケープ）。
"""
import re
from dataclasses import dataclass
from typing import Optional

_CELL_RE = re.compile(r"^([A-Za-z]*)(\d*)$")


@dataclass(frozen=True)
class A1Range:
    sheet: str
    start_col: Optional[int] = None  # 0始まり
    start_row: Optional[int] = None  # 1始まり
    end_col: Optional[int] = None
    end_row: Optional[int] = None


def column_letter(index: int) -> str:
    """0始まりの列番号を列文字に変換 (0 -> A, 26 -> AA)"""
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """列文字を0始まりの列番号に変換"""
    n = 0
    for ch in letters.upper():
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def quote_sheet(title: str) -> str:
    return "'" + title.replace("'", "''") + "'"


def a1(
    sheet: str,
    start_col: str,
    start_row: Optional[int] = None,
    end_col: Optional[str] = None,
    end_row: Optional[int] = None,
) -> str:
    """レンジ文字列を組み立てる

    a1("Dashboard", "A", 2, "K") -> 'Dashboard'!A2:K
    a1("Lisa", "C", 7) -> 'Lisa'!C7
    """
    ref = f"{start_col}{start_row or ''}"
    if end_col is not None or end_row is not None:
        ref += f":{end_col or ''}{end_row or ''}"
    return f"{quote_sheet(sheet)}!{ref}"


def row_range(sheet: str, start_col: str, end_col: str, row: int) -> str:
    """1行分のレンジ ('Dashboard'!A7:K7)"""
    return a1(sheet, start_col, row, end_col, row)


def _split_sheet(text: str) -> tuple[str, str]:
    if text.startswith("'"):
        i = 1
        title = ""
        while i < len(text):
            ch = text[i]
            if ch == "'":
                if i + 1 < len(text) and text[i + 1] == "'":
                    title += "'"
                    i += 2
                    continue
                rest = text[i + 1:]
                if rest and not rest.startswith("!"):
                    raise ValueError(f"Invalid A1 range: {text}")
                return title, rest[1:]
            title += ch
            i += 1
        raise ValueError(f"Unterminated sheet title: {text}")
    if "!" in text:
        title, ref = text.rsplit("!", 1)
        return title, ref
    return text, ""


def _parse_cell(ref: str) -> tuple[Optional[int], Optional[int]]:
    m = _CELL_RE.match(ref)
    if not m:
        raise ValueError(f"Invalid cell reference: {ref}")
    letters, digits = m.groups()
    col = column_index(letters) if letters else None
    row = int(digits) if digits else None
    return col, row


def parse_range(text: str) -> A1Range:
    """A1レンジ文字列を解析する"""
    sheet, ref = _split_sheet(text.strip())
    if not ref:
        return A1Range(sheet=sheet)
    if ":" in ref:
        start, end = ref.split(":", 1)
    else:
        start, end = ref, ref
    start_col, start_row = _parse_cell(start)
    end_col, end_row = _parse_cell(end)
    return A1Range(
        sheet=sheet,
        start_col=start_col,
        start_row=start_row,
        end_col=end_col,
        end_row=end_row,
    )
