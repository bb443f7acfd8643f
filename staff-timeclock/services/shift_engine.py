# services/shift_engine.py
"""出勤・休憩開始・休憩終了・退勤の状態遷移

日付ごとの状態機械: (なし) -> Working -> {On a Break <-> Working} -> Finished
Finished はその日の終端で、同じ日に再出勤はできない。

ストアにロックはないため、同一人物への同時リクエストは競合しうる。
読み取りから書き込みまでを短く保ち、書き込み直前に対象行を読み直して検証する。
"""
import logging
from datetime import date
from typing import Iterable, Optional

from services.errors import (
    AlreadyClockedIn,
    NoActiveBreak,
    NoActiveShift,
    NoOpenShift,
    ShiftAlreadyFinished,
    ValidationError,
)
from services.layout import (
    DATA_START_ROW,
    OPEN_STATUSES,
    STATUS_FINISHED,
    STATUS_ON_BREAK,
    STATUS_WORKING,
    TERMINAL_STATUSES,
    AggregateRow,
    BreakRow,
    PersonRow,
    SheetLayout,
)
from services.models import TransitionResult
from services.roster import RosterIndex
from services.roster_mutator import StaffRosterMutator
from services.shift_index import OpenShiftIndex
from services.slack_client import ConsoleNotifier
from services.status_resolver import KNOWN_STATUSES, find_latest_row
from services.store_interface import RowStoreInterface
from services.timefmt import StoreClock, minutes_between, parse_sheet_time
from services.write_steps import WriteStep, run_steps

logger = logging.getLogger(__name__)


def _require_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Staff name is required")
    return name.strip()


def _first(rows: list[list]) -> list:
    return rows[0] if rows else []


class ShiftTransitionEngine:
    def __init__(
        self,
        store: RowStoreInterface,
        layout: SheetLayout,
        roster: RosterIndex,
        clock: StoreClock,
        index: OpenShiftIndex,
        mutator: StaffRosterMutator,
        notifier=None,
    ):
        self._store = store
        self._layout = layout
        self._roster = roster
        self._clock = clock
        self._index = index
        self._mutator = mutator
        self._notifier = notifier or ConsoleNotifier()

    # ---- 行の特定 ----

    def _locate_aggregate(
        self, name: str, today: date, statuses: Iterable[str]
    ) -> Optional[AggregateRow]:
        """今日の最新 Dashboard 行が指定状態ならそれを返す

        状態一覧と同じく「今日の最新行」だけで判定する。
        """
        wanted = tuple(statuses)
        hint = self._index.get(name, today)
        if hint is not None and hint.aggregate_row:
            cells = _first(self._store.read_range(self._layout.dashboard_row(hint.aggregate_row)))
            row = AggregateRow.from_cells(hint.aggregate_row, cells)
            if row.staff_name == name and row.date == today:
                if row.status in wanted:
                    return row
                if row.status in KNOWN_STATUSES:
                    # インデックスは最新行を指している。状態が合わなければ該当なし
                    self._index.update(name, today, status=row.status)
                    return None
            logger.info(
                "Stale index handle for %s (Dashboard row %s); rescanning",
                name, hint.aggregate_row,
            )

        rows = self._store.read_range(self._layout.dashboard_range())
        row = find_latest_row(rows, name, today, KNOWN_STATUSES)
        if row is None:
            return None
        self._index.update(name, today, aggregate_row=row.row_number, status=row.status)
        return row if row.status in wanted else None

    def _latest_aggregate(self, name: str, today: date) -> Optional[AggregateRow]:
        """今日の最新 Dashboard 行（状態を問わない）"""
        return self._locate_aggregate(name, today, KNOWN_STATUSES)

    def _locate_person_open(self, name: str, today: date) -> Optional[PersonRow]:
        """個人シートで今日の未退勤行（出勤あり・退勤なし）を探す"""
        hint = self._index.get(name, today)
        if hint is not None and hint.person_row:
            cells = _first(self._store.read_range(self._layout.person_row(name, hint.person_row)))
            row = PersonRow.from_cells(hint.person_row, cells)
            if row.date == today and row.is_open:
                return row

        rows = self._store.read_range(self._layout.person_range(name))
        for offset in range(len(rows) - 1, -1, -1):
            row = PersonRow.from_cells(offset + DATA_START_ROW, rows[offset])
            if row.date == today and row.is_open:
                self._index.update(name, today, person_row=row.row_number)
                return row
        return None

    def _locate_open_break(self, name: str, today: date) -> Optional[BreakRow]:
        """Break Log で今日の未終了の休憩行を探す"""
        hint = self._index.get(name, today)
        if hint is not None and hint.break_row:
            cells = _first(self._store.read_range(self._layout.break_row(hint.break_row)))
            row = BreakRow.from_cells(hint.break_row, cells)
            if row.staff_name == name and row.date == today and row.is_open:
                return row

        rows = self._store.read_range(self._layout.break_range())
        for offset in range(len(rows) - 1, -1, -1):
            row = BreakRow.from_cells(offset + DATA_START_ROW, rows[offset])
            if row.staff_name == name and row.date == today and row.is_open:
                self._index.update(name, today, break_row=row.row_number)
                return row
        self._index.update(name, today, break_row=None)
        return None

    def _break_total(self, name: str, today: date) -> int:
        """今日の終了済み休憩の合計分数。Break Log から毎回集計する"""
        total = 0
        for offset, cells in enumerate(self._store.read_range(self._layout.break_range())):
            row = BreakRow.from_cells(offset + DATA_START_ROW, cells)
            if row.staff_name == name and row.date == today and row.break_end:
                total += row.duration_minutes
        return total

    # ---- 遷移 ----

    def clock_in(self, name: str) -> TransitionResult:
        name = _require_name(name)
        staff = self._roster.require(name)
        self._mutator.ensure_person_sheet(staff.name)

        now = self._clock.now()
        today = now.date()
        if self._locate_person_open(name, today) is not None:
            raise AlreadyClockedIn(name)
        latest = self._latest_aggregate(name, today)
        if latest is not None:
            if latest.is_open:
                raise AlreadyClockedIn(name)
            if latest.status in TERMINAL_STATUSES:
                raise ShiftAlreadyFinished(name)

        date_str = self._clock.format_date(today)
        time_str = self._clock.format_time(now)
        person_values = [date_str, time_str, "", None, staff.hourly_wage, None, None, ""]
        dashboard_values = [
            date_str, staff.name, staff.department, staff.position, time_str, "",
            None, staff.hourly_wage, None, STATUS_WORKING, "",
        ]

        person_row, aggregate_row = run_steps(
            [
                WriteStep(
                    "append personal log row",
                    lambda: self._store.append_row(self._layout.person_append(name), person_values),
                ),
                WriteStep(
                    "append Dashboard row",
                    lambda: self._store.append_row(self._layout.dashboard_append(), dashboard_values),
                ),
            ],
            subject=f"clock-in for {name}",
            notifier=self._notifier,
        )
        self._index.update(
            name, today,
            person_row=person_row,
            aggregate_row=aggregate_row,
            break_row=None,
            status=STATUS_WORKING,
        )
        logger.info("%s clocked in at %s", name, time_str)
        return TransitionResult(True, f"Clocked in at {time_str}", time_str)

    def take_break(self, name: str) -> TransitionResult:
        name = _require_name(name)
        staff = self._roster.require(name)

        now = self._clock.now()
        today = now.date()
        row = self._locate_aggregate(name, today, (STATUS_WORKING,))
        if row is None:
            raise NoActiveShift(name)

        date_str = self._clock.format_date(today)
        time_str = self._clock.format_time(now)
        steps = [
            WriteStep(
                "set Dashboard status On a Break",
                lambda: self._store.update_cells(
                    self._layout.dashboard_status(row.row_number), [[STATUS_ON_BREAK]]
                ),
            ),
        ]
        existing = self._locate_open_break(name, today)
        if existing is None:
            steps.append(
                WriteStep(
                    "append Break Log row",
                    lambda: self._store.append_row(
                        self._layout.break_append(),
                        [date_str, name, staff.department, time_str, "", None],
                    ),
                )
            )
        else:
            # 開いたままの休憩行を引き継ぐ（休憩行は1人1日1つまで）
            logger.warning(
                "%s already has an open break (Break Log row %s); reusing it",
                name, existing.row_number,
            )
            time_str = existing.break_start

        results = run_steps(steps, subject=f"break start for {name}", notifier=self._notifier)
        break_row = results[1] if existing is None else existing.row_number
        self._index.update(
            name, today,
            aggregate_row=row.row_number,
            break_row=break_row,
            status=STATUS_ON_BREAK,
        )
        logger.info("%s started a break at %s", name, time_str)
        return TransitionResult(True, f"Started break at {time_str}", time_str)

    def return_from_break(self, name: str) -> TransitionResult:
        name = _require_name(name)
        self._roster.require(name)

        now = self._clock.now()
        today = now.date()
        brk = self._locate_open_break(name, today)
        if brk is None:
            raise NoActiveBreak(name)

        started = parse_sheet_time(brk.break_start)
        if started is None:
            logger.warning("Unreadable break start %r for %s; counting 0 minutes", brk.break_start, name)
            duration = 0
        else:
            duration = minutes_between(started, now.time())

        time_str = self._clock.format_time(now)
        row = self._locate_aggregate(name, today, (STATUS_ON_BREAK,))
        steps = [
            WriteStep(
                "close Break Log row",
                lambda: self._store.update_cells(
                    self._layout.break_close(brk.row_number), [[time_str, duration]]
                ),
            ),
        ]
        if row is not None:
            steps.append(
                WriteStep(
                    "set Dashboard status Working",
                    lambda: self._store.update_cells(
                        self._layout.dashboard_status(row.row_number), [[STATUS_WORKING]]
                    ),
                )
            )
        else:
            logger.warning("No On a Break Dashboard row for %s today; closing the break only", name)

        run_steps(steps, subject=f"break end for {name}", notifier=self._notifier)
        self._index.update(name, today, break_row=None, status=STATUS_WORKING)
        total = self._break_total(name, today)
        logger.info("%s returned from a %d minute break", name, duration)
        return TransitionResult(
            True,
            f"Returned from break at {time_str} ({duration} min)",
            time_str,
            break_duration=duration,
            total_break_minutes=total,
        )

    def clock_out(self, name: str) -> TransitionResult:
        name = _require_name(name)
        self._roster.require(name)

        if name not in self._store.list_sheets():
            # 一度も出勤していない（個人シートが未作成）
            raise NoOpenShift(name)

        now = self._clock.now()
        today = now.date()
        person = self._locate_person_open(name, today)
        if person is None:
            raise NoOpenShift(name)

        time_str = self._clock.format_time(now)
        row = self._locate_aggregate(name, today, OPEN_STATUSES)
        brk = None
        if row is None or row.status == STATUS_ON_BREAK:
            brk = self._locate_open_break(name, today)

        steps = [
            WriteStep(
                "write personal sign-out",
                lambda: self._store.update_cells(
                    self._layout.person_sign_out(name, person.row_number), [[time_str]]
                ),
            ),
        ]
        duration = 0
        if brk is not None:
            started = parse_sheet_time(brk.break_start)
            duration = minutes_between(started, now.time()) if started else 0
            steps.append(
                WriteStep(
                    "close Break Log row",
                    lambda: self._store.update_cells(
                        self._layout.break_close(brk.row_number), [[time_str, duration]]
                    ),
                )
            )
        if row is not None:
            steps.append(
                WriteStep(
                    "set Dashboard status Finished",
                    lambda: self._store.update_cells(
                        self._layout.dashboard_close(row.row_number),
                        [[time_str, None, None, None, STATUS_FINISHED]],
                    ),
                )
            )
        else:
            logger.warning("No open Dashboard row for %s today; closing the personal log only", name)

        run_steps(steps, subject=f"clock-out for {name}", notifier=self._notifier)
        if brk is not None:
            logger.info(
                "%s closed a %d minute break at clock-out (%d min today)",
                name, duration, self._break_total(name, today),
            )
        self._index.update(
            name, today,
            person_row=None,
            break_row=None,
            status=STATUS_FINISHED,
        )
        logger.info("%s clocked out at %s", name, time_str)
        return TransitionResult(True, f"Clocked out at {time_str}", time_str)
