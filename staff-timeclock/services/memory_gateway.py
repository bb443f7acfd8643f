import logging
import threading
from typing import Optional

from services.a1 import parse_range
from services.errors import NotFound, StoreUnavailable
from services.store_interface import RowStoreInterface

logger = logging.getLogger(__name__)


def _to_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class InMemoryStore(RowStoreInterface):
    """メモリ上の行ストア。ローカル実行とテスト用。

    読み取り結果は Sheets API の FORMATTED_VALUE と同様に文字列で返し、
    末尾の空セル・空行は省略する。
    """

    def __init__(self, sheets: Optional[dict] = None):
        self._sheets: dict[str, list[list]] = {}
        self._lock = threading.Lock()
        for title, rows in (sheets or {}).items():
            self.seed(title, rows)

    def seed(self, title: str, rows: list[list]) -> None:
        """シートを行データごと作成する（1行目から）"""
        with self._lock:
            self._sheets[title] = [list(r) for r in rows]

    def sheet_rows(self, title: str) -> list[list]:
        """シートの生データ（検証用）"""
        with self._lock:
            return [list(r) for r in self._sheets.get(title, [])]

    def _sheet(self, title: str) -> list[list]:
        if title not in self._sheets:
            raise StoreUnavailable(f"Unable to parse range: sheet '{title}' does not exist")
        return self._sheets[title]

    def read_range(self, range_: str) -> list[list]:
        rng = parse_range(range_)
        with self._lock:
            rows = self._sheet(rng.sheet)
            start_row = (rng.start_row or 1) - 1
            end_row = rng.end_row if rng.end_row is not None else len(rows)
            start_col = rng.start_col or 0

            result = []
            for raw in rows[start_row:end_row]:
                end_col = rng.end_col + 1 if rng.end_col is not None else len(raw)
                cells = [_to_cell(v) for v in raw[start_col:end_col]]
                while cells and cells[-1] == "":
                    cells.pop()
                result.append(cells)

        while result and not result[-1]:
            result.pop()
        return result

    def append_row(self, range_: str, row: list) -> Optional[int]:
        rng = parse_range(range_)
        with self._lock:
            rows = self._sheet(rng.sheet)
            last = len(rows)
            while last > 0 and not any(_to_cell(v) for v in rows[last - 1]):
                last -= 1
            del rows[last:]
            start_col = rng.start_col or 0
            rows.append([None] * start_col + list(row))
            return len(rows)

    def update_cells(self, range_: str, values: list[list]) -> None:
        rng = parse_range(range_)
        with self._lock:
            rows = self._sheet(rng.sheet)
            start_row = (rng.start_row or 1) - 1
            start_col = rng.start_col or 0
            for r_offset, new_values in enumerate(values):
                r = start_row + r_offset
                while len(rows) <= r:
                    rows.append([])
                target = rows[r]
                for c_offset, value in enumerate(new_values):
                    if value is None:
                        continue
                    c = start_col + c_offset
                    while len(target) <= c:
                        target.append(None)
                    target[c] = value

    def list_sheets(self) -> list[str]:
        with self._lock:
            return list(self._sheets)

    def add_sheet(self, title: str) -> None:
        with self._lock:
            if title in self._sheets:
                raise StoreUnavailable(f"A sheet with the name \"{title}\" already exists")
            self._sheets[title] = []
        logger.debug("[InMemoryStore] シート追加: %s", title)

    def rename_sheet(self, old_title: str, new_title: str) -> None:
        with self._lock:
            if old_title not in self._sheets:
                raise NotFound(f"Sheet not found: {old_title}")
            if new_title in self._sheets:
                raise StoreUnavailable(f"A sheet with the name \"{new_title}\" already exists")
            self._sheets[new_title] = self._sheets.pop(old_title)

    def describe(self) -> dict:
        return {"sheetId": "in-memory", "connectedEmail": "Unknown"}
