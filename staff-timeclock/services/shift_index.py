# services/shift_index.py
import dataclasses
import logging
import threading
from datetime import date
from typing import Optional

from services.layout import DATA_START_ROW, BreakRow, SheetLayout
from services.models import OpenShift
from services.status_resolver import latest_today_rows
from services.store_interface import RowStoreInterface
from services.timefmt import StoreClock

logger = logging.getLogger(__name__)


class OpenShiftIndex:
    """(氏名, 日付) -> 未完了行の所在 を保持するインデックス

    起動時と定期ジョブでシートから再構築し、遷移ごとに差分更新する。
    ここに入っている行番号はヒントに過ぎず、書き込み前に必ず再検証すること。
    """

    def __init__(self, store: RowStoreInterface, layout: SheetLayout, clock: StoreClock):
        self._store = store
        self._layout = layout
        self._clock = clock
        self._entries: dict[tuple[str, date], OpenShift] = {}
        # キーごとの最終更新世代。再構築中の更新を上書きしないために使う
        self._touched: dict[tuple[str, date], int] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def rebuild(self) -> int:
        """Dashboard と Break Log を走査して今日分を作り直す"""
        with self._lock:
            started = self._generation

        today = self._clock.today()
        dashboard_rows = self._store.read_range(self._layout.dashboard_range())
        break_rows = self._store.read_range(self._layout.break_range())

        entries: dict[tuple[str, date], OpenShift] = {}
        for name, row in latest_today_rows(dashboard_rows, today).items():
            entries[(name, today)] = OpenShift(
                aggregate_row=row.row_number, status=row.status
            )

        for offset, cells in enumerate(break_rows):
            brk = BreakRow.from_cells(offset + DATA_START_ROW, cells)
            if brk.is_open and brk.staff_name and brk.date == today:
                entries.setdefault((brk.staff_name, today), OpenShift()).break_row = brk.row_number

        with self._lock:
            # 個人シートの行番号は走査対象外なので、既知のものを引き継ぐ
            for key, entry in entries.items():
                previous = self._entries.get(key)
                if previous is not None:
                    entry.person_row = previous.person_row
            # 読み取り後に遷移が書き込んだエントリはそちらが新しい
            touched = {key: gen for key, gen in self._touched.items() if gen > started}
            for key in touched:
                if key in self._entries:
                    entries[key] = self._entries[key]
            self._entries = entries
            self._touched = touched

        logger.info("Open-shift index rebuilt: %d entries for %s", len(entries), today)
        return len(entries)

    def get(self, name: str, day: date) -> Optional[OpenShift]:
        with self._lock:
            entry = self._entries.get((name, day))
            return dataclasses.replace(entry) if entry is not None else None

    def update(self, name: str, day: date, **changes) -> None:
        with self._lock:
            key = (name, day)
            entry = self._entries.setdefault(key, OpenShift())
            for field, value in changes.items():
                setattr(entry, field, value)
            self._generation += 1
            self._touched[key] = self._generation
