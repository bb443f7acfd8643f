# services/status_resolver.py
"""Dashboard シートから各スタッフの現在の状態を導出する

状態判定はこのモジュールの走査関数に一本化されており、
遷移エンジンとインデックスも同じ関数で「今日の最新行」を決める。
"""
from datetime import date
from typing import Iterable, Optional

from services.layout import (
    DATA_START_ROW,
    OPEN_STATUSES,
    STATUS_ON_BREAK,
    STATUS_WORKING,
    TERMINAL_STATUSES,
    AggregateRow,
    SheetLayout,
    cell,
)
from services.models import CLOCKED_IN, CLOCKED_OUT, ON_BREAK, StatusView
from services.roster import RosterIndex
from services.store_interface import RowStoreInterface
from services.timefmt import StoreClock

KNOWN_STATUSES = OPEN_STATUSES + TERMINAL_STATUSES

STATUS_VIEW = {
    STATUS_WORKING: CLOCKED_IN,
    STATUS_ON_BREAK: ON_BREAK,
}


def _iter_backward(rows: list[list]):
    for offset in range(len(rows) - 1, -1, -1):
        cells = rows[offset]
        if not cells or not cell(cells, 1):
            continue
        yield AggregateRow.from_cells(offset + DATA_START_ROW, cells)


def latest_today_rows(rows: list[list], today: date) -> dict[str, AggregateRow]:
    """末尾から走査し、氏名ごとに今日付の最新行だけを残す

    状態が未知の行は読み飛ばす。今日以外の日付の行は結果に影響しない。
    """
    latest: dict[str, AggregateRow] = {}
    for row in _iter_backward(rows):
        if row.staff_name in latest:
            continue
        if row.date != today or row.status not in KNOWN_STATUSES:
            continue
        latest[row.staff_name] = row
    return latest


def find_latest_row(
    rows: list[list],
    name: str,
    today: date,
    statuses: Iterable[str],
) -> Optional[AggregateRow]:
    """指定した状態を持つ今日付の行のうち最新のものを返す"""
    wanted = tuple(statuses)
    for row in _iter_backward(rows):
        if row.staff_name == name and row.date == today and row.status in wanted:
            return row
    return None


class ShiftStatusResolver:
    """ロスター順に StatusView を返す（読み取り専用）"""

    def __init__(
        self,
        store: RowStoreInterface,
        layout: SheetLayout,
        roster: RosterIndex,
        clock: StoreClock,
    ):
        self._store = store
        self._layout = layout
        self._roster = roster
        self._clock = clock

    def resolve_current_status(self) -> list[StatusView]:
        roster = self._roster.load_roster()
        rows = self._store.read_range(self._layout.dashboard_range())
        latest = latest_today_rows(rows, self._clock.today())

        views = []
        for staff in roster:
            row = latest.get(staff.name)
            if row is None or row.status in TERMINAL_STATUSES:
                views.append(StatusView(staff.name, staff.department, "", CLOCKED_OUT))
            else:
                views.append(
                    StatusView(
                        staff.name, staff.department, row.sign_in, STATUS_VIEW[row.status]
                    )
                )
        return views
