# services/roster_mutator.py
import logging
from typing import Optional

from services.errors import DuplicateStaff, NotFound, StateConflict, ValidationError
from services.layout import PERSON_HEADER, SheetLayout
from services.models import StaffRecord
from services.roster import RosterIndex
from services.slack_client import ConsoleNotifier
from services.status_resolver import latest_today_rows
from services.store_interface import RowStoreInterface
from services.write_steps import WriteStep, run_steps

logger = logging.getLogger(__name__)


def ensure_sheet(store: RowStoreInterface, title: str, header: list, header_range: str) -> bool:
    """シートが無ければ作成してヘッダ行を書く。作成した場合 True"""
    if title in store.list_sheets():
        return False
    store.add_sheet(title)
    store.update_cells(header_range, [header])
    logger.info("Provisioned sheet '%s'", title)
    return True


def normalize_record(record: StaffRecord) -> StaffRecord:
    """前後の空白を除去し、必須項目を検証する"""
    name = (record.name or "").strip()
    if not name:
        raise ValidationError("Staff name is required")
    if record.hourly_wage is None or record.hourly_wage < 0:
        raise ValidationError("Hourly wage must be zero or more")
    return StaffRecord(
        name=name,
        department=(record.department or "").strip(),
        position=(record.position or "").strip(),
        hourly_wage=float(record.hourly_wage),
        status=(record.status or "Active").strip() or "Active",
    )


class StaffRosterMutator:
    """スタッフの追加・更新と個人シートの用意"""

    def __init__(
        self,
        store: RowStoreInterface,
        layout: SheetLayout,
        roster: RosterIndex,
        clock=None,
        notifier=None,
    ):
        self._store = store
        self._layout = layout
        self._roster = roster
        self._clock = clock
        self._notifier = notifier or ConsoleNotifier()

    def ensure_person_sheet(self, name: str) -> bool:
        return ensure_sheet(
            self._store, name, PERSON_HEADER, self._layout.person_header(name)
        )

    def _provision_steps(self, name: str) -> list[WriteStep]:
        return [
            WriteStep("add personal sheet", lambda: self._store.add_sheet(name)),
            WriteStep(
                "write personal sheet header",
                lambda: self._store.update_cells(
                    self._layout.person_header(name), [PERSON_HEADER]
                ),
            ),
        ]

    def add_staff(self, record: StaffRecord) -> StaffRecord:
        record = normalize_record(record)
        if self._roster.find_by_name(record.name) is not None:
            raise DuplicateStaff(record.name)

        steps = [
            WriteStep(
                "append roster row",
                lambda: self._store.append_row(self._layout.roster_append(), record.to_row()),
            ),
        ]
        if record.name not in self._store.list_sheets():
            steps.extend(self._provision_steps(record.name))
        run_steps(steps, subject=f"add staff {record.name}", notifier=self._notifier)
        logger.info("Added staff member %s", record.name)
        return record

    def update_staff(self, old_name: str, record: StaffRecord) -> StaffRecord:
        record = normalize_record(record)
        old_name = (old_name or "").strip()

        row_number: Optional[int] = None
        others = []
        for number, existing in self._roster.load_rows():
            if existing.name == old_name and row_number is None:
                row_number = number
            else:
                others.append(existing.name)
        if row_number is None:
            raise NotFound(f"Staff member not found: {old_name}")

        renamed = record.name != old_name
        sheets = self._store.list_sheets()
        if renamed:
            if record.name in others:
                raise DuplicateStaff(record.name)
            if record.name in sheets:
                raise StateConflict(f"A sheet named '{record.name}' already exists")
            if self._has_open_shift(old_name):
                raise StateConflict(
                    f"{old_name} has an open shift today; clock out before renaming"
                )

        steps = [
            WriteStep(
                "overwrite roster row",
                lambda: self._store.update_cells(
                    self._layout.roster_row(row_number), [record.to_row()]
                ),
            ),
        ]
        if renamed:
            # 個人シートは氏名がキー。履歴を残すためコピーではなく改名する
            if old_name in sheets:
                steps.append(
                    WriteStep(
                        "rename personal sheet",
                        lambda: self._store.rename_sheet(old_name, record.name),
                    )
                )
            else:
                steps.extend(self._provision_steps(record.name))
        run_steps(steps, subject=f"update staff {old_name}", notifier=self._notifier)
        if renamed:
            logger.info("Renamed staff member '%s' to '%s'", old_name, record.name)
        return record

    def _has_open_shift(self, name: str) -> bool:
        """Dashboard 上で今日の最新行が Working / On a Break か"""
        if self._clock is None:
            return False
        rows = self._store.read_range(self._layout.dashboard_range())
        row = latest_today_rows(rows, self._clock.today()).get(name)
        return row is not None and row.is_open
