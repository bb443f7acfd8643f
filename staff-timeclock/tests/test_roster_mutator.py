from unittest.mock import patch

import pytest

from services.errors import (
    DuplicateStaff,
    NotFound,
    PartialWrite,
    StateConflict,
    StoreUnavailable,
    ValidationError,
)
from services.layout import PERSON_HEADER
from services.models import StaffRecord


def test_add_staff_provisions_sheet(context, store):
    record = context.mutator.add_staff(StaffRecord(" Tom ", "STAFF", "Chef", 10.5))

    assert record.name == "Tom"
    assert store.read_range("'Staff Roster'!A4:E4") == [["Tom", "STAFF", "Chef", "10.5", "Active"]]
    assert store.sheet_rows("Tom") == [PERSON_HEADER]
    assert context.roster.find_by_name("Tom").position == "Chef"


def test_person_sheet_provisioned_once(context, store):
    """既存の個人シートは作り直さない"""
    assert context.mutator.ensure_person_sheet("Lisa") is True
    with patch.object(store, "add_sheet") as add_sheet:
        assert context.mutator.ensure_person_sheet("Lisa") is False
    add_sheet.assert_not_called()


def test_add_duplicate(context, store):
    with pytest.raises(DuplicateStaff):
        context.mutator.add_staff(StaffRecord("Lisa", "ADMIN", "Manager", 12.5))
    assert len(store.read_range("'Staff Roster'!A2:E")) == 2


def test_add_invalid(context):
    with pytest.raises(ValidationError):
        context.mutator.add_staff(StaffRecord("  ", "STAFF", "Chef", 10))
    with pytest.raises(ValidationError):
        context.mutator.add_staff(StaffRecord("Tom", "STAFF", "Chef", -1))


def test_update_in_place(context, store):
    context.mutator.update_staff("Clare H", StaffRecord("Clare H", "STAFF", "Supervisor", 13))
    assert store.read_range("'Staff Roster'!A3:E3") == [["Clare H", "STAFF", "Supervisor", "13", "Active"]]


def test_rename_moves_person_sheet(context, store, clock):
    context.engine.clock_in("Clare H")
    clock.set(12, 0)
    context.engine.clock_out("Clare H")
    history = store.sheet_rows("Clare H")

    context.mutator.update_staff("Clare H", StaffRecord("Clare Hughes", "STAFF", "Barista", 11))

    assert "Clare H" not in store.list_sheets()
    assert store.sheet_rows("Clare Hughes") == history
    assert context.roster.find_by_name("Clare Hughes") is not None
    assert context.roster.find_by_name("Clare H") is None


def test_rename_without_sheet_provisions_new_one(context, store):
    context.mutator.update_staff("Lisa", StaffRecord("Lisa B", "ADMIN", "Manager", 12.5))
    assert store.sheet_rows("Lisa B") == [PERSON_HEADER]


def test_rename_conflicts(context):
    with pytest.raises(NotFound):
        context.mutator.update_staff("Ghost", StaffRecord("Ghost", "", "", 0))
    with pytest.raises(DuplicateStaff):
        context.mutator.update_staff("Clare H", StaffRecord("Lisa", "STAFF", "Barista", 11))


def test_rename_during_open_shift_rejected(context, store):
    """出勤中の改名は不可（Dashboard の行と個人シートがずれるため）"""
    context.engine.clock_in("Lisa")
    with pytest.raises(StateConflict):
        context.mutator.update_staff("Lisa", StaffRecord("Lisa B", "ADMIN", "Manager", 12.5))
    assert context.roster.find_by_name("Lisa") is not None
    assert "Lisa B" not in store.list_sheets()


def test_rename_onto_existing_sheet_rejected(context, store):
    """改名先と同名のシートが既にあれば、ロスターを書き換える前に拒否する"""
    store.seed("Lisa B", [PERSON_HEADER])
    with pytest.raises(StateConflict):
        context.mutator.update_staff("Lisa", StaffRecord("Lisa B", "ADMIN", "Manager", 12.5))
    assert context.roster.find_by_name("Lisa") is not None
    assert context.roster.find_by_name("Lisa B") is None


def test_rename_failure_is_partial_write(context, store, notifier, caplog):
    """ロスター更新後にシート改名が失敗したら PartialWrite として通知する"""
    context.mutator.ensure_person_sheet("Clare H")

    with patch.object(store, "rename_sheet", side_effect=StoreUnavailable("rate limited")):
        with pytest.raises(PartialWrite) as exc_info:
            context.mutator.update_staff(
                "Clare H", StaffRecord("Clare Hughes", "STAFF", "Barista", 11)
            )

    assert exc_info.value.completed_steps == ["overwrite roster row"]
    assert exc_info.value.failed_step == "rename personal sheet"
    notifier.send_error.assert_called_once()
    assert "partial write" in caplog.text
    assert context.roster.find_by_name("Clare Hughes") is not None
    assert "Clare H" in store.list_sheets()


def test_add_staff_header_failure_is_partial_write(context, store, notifier):
    with patch.object(store, "update_cells", side_effect=StoreUnavailable("timeout")):
        with pytest.raises(PartialWrite) as exc_info:
            context.mutator.add_staff(StaffRecord("Tom", "STAFF", "Chef", 10))

    assert exc_info.value.completed_steps == ["append roster row", "add personal sheet"]
    notifier.send_error.assert_called_once()
