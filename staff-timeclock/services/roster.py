# services/roster.py
import re
from typing import Optional

from services.errors import UnknownStaff
from services.layout import DATA_START_ROW, SheetLayout, cell
from services.models import StaffRecord
from services.store_interface import RowStoreInterface

_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_wage(value) -> float:
    """時給セルを数値化する（通貨記号などは除去、解釈できなければ 0）"""
    text = _NON_NUMERIC.sub("", str(value or ""))
    try:
        return float(text) if text else 0.0
    except ValueError:
        return 0.0


def record_from_cells(cells: list) -> StaffRecord:
    return StaffRecord(
        name=cell(cells, 0),
        department=cell(cells, 1),
        position=cell(cells, 2),
        hourly_wage=parse_wage(cell(cells, 3)),
        status=cell(cells, 4) or "Active",
    )


class RosterIndex:
    """Staff Roster シートから在籍スタッフを読み込む"""

    def __init__(self, store: RowStoreInterface, layout: SheetLayout):
        self._store = store
        self._layout = layout

    def load_rows(self) -> list[tuple[int, StaffRecord]]:
        """(行番号, レコード) のリスト。氏名が空の行は除外する"""
        rows = self._store.read_range(self._layout.roster_range())
        result = []
        for offset, cells in enumerate(rows):
            record = record_from_cells(cells)
            if record.name:
                result.append((offset + DATA_START_ROW, record))
        return result

    def load_roster(self) -> list[StaffRecord]:
        return [record for _, record in self.load_rows()]

    def find_by_name(self, name: str) -> Optional[StaffRecord]:
        """完全一致（大文字小文字を区別）で検索する"""
        target = (name or "").strip()
        for record in self.load_roster():
            if record.name == target:
                return record
        return None

    def require(self, name: str) -> StaffRecord:
        record = self.find_by_name(name)
        if record is None:
            raise UnknownStaff(name)
        return record
