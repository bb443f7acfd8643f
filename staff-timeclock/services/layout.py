# services/layout.py
"""スプレッドシートのシート構成と行の解釈

列の並びは既存の履歴データとの互換のため変更しないこと。
数式列（Hours, Pay など）はシート側の管理なので常に None を書き込む
（Sheets API は null のセルを書き換えない）。
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional

from services.a1 import a1, row_range
from services.timefmt import parse_sheet_date

STATUS_WORKING = "Working"
STATUS_ON_BREAK = "On a Break"
STATUS_FINISHED = "Finished"
STATUS_COMPLETED = "Completed"

OPEN_STATUSES = (STATUS_WORKING, STATUS_ON_BREAK)
TERMINAL_STATUSES = (STATUS_FINISHED, STATUS_COMPLETED)

DATA_START_ROW = 2

ROSTER_HEADER = ["Name", "Department", "Position", "Hourly Wage", "Status"]
PERSON_HEADER = [
    "Date", "Sign In", "Sign Out", "Hours", "Hourly Wage", "Pay", "Cumulative Pay", "Notes",
]
DASHBOARD_HEADER = [
    "Date", "Staff Name", "Department", "Position", "Sign In", "Sign Out",
    "Hours", "Hourly Wage", "Pay", "Status", "Notes",
]
BREAK_LOG_HEADER = [
    "Date", "Staff Name", "Department", "Break Start", "Break End", "Duration (min)",
]


def cell(cells: list, index: int) -> str:
    """欠けたセル・None を空文字として取り出す"""
    if index >= len(cells) or cells[index] is None:
        return ""
    return str(cells[index]).strip()


@dataclass(frozen=True)
class SheetLayout:
    roster: str = "Staff Roster"
    dashboard: str = "Dashboard"
    break_log: str = "Break Log"

    # Staff Roster
    def roster_range(self) -> str:
        return a1(self.roster, "A", DATA_START_ROW, "E")

    def roster_append(self) -> str:
        return a1(self.roster, "A", None, "E")

    def roster_row(self, row: int) -> str:
        return row_range(self.roster, "A", "E", row)

    # 個人シート
    def person_range(self, name: str) -> str:
        return a1(name, "A", DATA_START_ROW, "C")

    def person_row(self, name: str, row: int) -> str:
        return row_range(name, "A", "C", row)

    def person_append(self, name: str) -> str:
        return a1(name, "A", None, "H")

    def person_header(self, name: str) -> str:
        return row_range(name, "A", "H", 1)

    def person_sign_out(self, name: str, row: int) -> str:
        return a1(name, "C", row)

    # Dashboard
    def dashboard_range(self) -> str:
        return a1(self.dashboard, "A", DATA_START_ROW, "K")

    def dashboard_append(self) -> str:
        return a1(self.dashboard, "A", None, "K")

    def dashboard_row(self, row: int) -> str:
        return row_range(self.dashboard, "A", "K", row)

    def dashboard_status(self, row: int) -> str:
        return a1(self.dashboard, "J", row)

    def dashboard_close(self, row: int) -> str:
        # F(Sign Out)〜J(Status)。間の数式列には None を渡す
        return row_range(self.dashboard, "F", "J", row)

    # Break Log
    def break_range(self) -> str:
        return a1(self.break_log, "A", DATA_START_ROW, "F")

    def break_append(self) -> str:
        return a1(self.break_log, "A", None, "F")

    def break_row(self, row: int) -> str:
        return row_range(self.break_log, "A", "F", row)

    def break_close(self, row: int) -> str:
        return row_range(self.break_log, "E", "F", row)


@dataclass(frozen=True)
class AggregateRow:
    """Dashboard の1行"""

    row_number: int
    date: Optional[date]
    staff_name: str
    department: str
    position: str
    sign_in: str
    sign_out: str
    status: str
    notes: str

    @classmethod
    def from_cells(cls, row_number: int, cells: list) -> "AggregateRow":
        return cls(
            row_number=row_number,
            date=parse_sheet_date(cell(cells, 0)),
            staff_name=cell(cells, 1),
            department=cell(cells, 2),
            position=cell(cells, 3),
            sign_in=cell(cells, 4),
            sign_out=cell(cells, 5),
            status=cell(cells, 9),
            notes=cell(cells, 10),
        )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


@dataclass(frozen=True)
class PersonRow:
    """個人シートの1行（A〜C列のみ）"""

    row_number: int
    date: Optional[date]
    sign_in: str
    sign_out: str

    @classmethod
    def from_cells(cls, row_number: int, cells: list) -> "PersonRow":
        return cls(
            row_number=row_number,
            date=parse_sheet_date(cell(cells, 0)),
            sign_in=cell(cells, 1),
            sign_out=cell(cells, 2),
        )

    @property
    def is_open(self) -> bool:
        return bool(self.sign_in) and not self.sign_out


@dataclass(frozen=True)
class BreakRow:
    """Break Log の1行"""

    row_number: int
    date: Optional[date]
    staff_name: str
    department: str
    break_start: str
    break_end: str
    duration_minutes: int

    @classmethod
    def from_cells(cls, row_number: int, cells: list) -> "BreakRow":
        try:
            duration = int(float(cell(cells, 5) or 0))
        except ValueError:
            duration = 0
        return cls(
            row_number=row_number,
            date=parse_sheet_date(cell(cells, 0)),
            staff_name=cell(cells, 1),
            department=cell(cells, 2),
            break_start=cell(cells, 3),
            break_end=cell(cells, 4),
            duration_minutes=duration,
        )

    @property
    def is_open(self) -> bool:
        return bool(self.break_start) and not self.break_end
