# services/context.py
"""起動時に一度だけ組み立てる実行コンテキスト

接続先のスプレッドシートは設定で固定され、リクエストから上書きすることはできない。
"""
import logging
import os
from dataclasses import dataclass

from services.layout import (
    BREAK_LOG_HEADER,
    DASHBOARD_HEADER,
    ROSTER_HEADER,
    SheetLayout,
)
from services.memory_gateway import InMemoryStore
from services.roster import RosterIndex
from services.roster_mutator import StaffRosterMutator, ensure_sheet
from services.shift_engine import ShiftTransitionEngine
from services.shift_index import OpenShiftIndex
from services.slack_client import create_notifier
from services.status_resolver import ShiftStatusResolver
from services.store_interface import RowStoreInterface
from services.timefmt import StoreClock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    spreadsheet_id: str
    layout: SheetLayout
    clock: StoreClock
    store: RowStoreInterface
    roster: RosterIndex
    resolver: ShiftStatusResolver
    index: OpenShiftIndex
    mutator: StaffRosterMutator
    engine: ShiftTransitionEngine
    notifier: object


def create_layout(config: dict) -> SheetLayout:
    sheets = config["sheets"]
    return SheetLayout(
        roster=sheets["roster"],
        dashboard=sheets["dashboard"],
        break_log=sheets["break_log"],
    )


def create_store(config: dict, layout: SheetLayout, environ=None) -> RowStoreInterface:
    """設定に基づいて行ストアを生成"""
    if environ is None:
        environ = os.environ
    store_config = config["store"]

    if store_config["backend"] == "memory":
        return InMemoryStore(
            {
                layout.roster: [ROSTER_HEADER],
                layout.dashboard: [DASHBOARD_HEADER],
                layout.break_log: [BREAK_LOG_HEADER],
            }
        )

    spreadsheet_id = store_config["spreadsheet_id"]
    if not spreadsheet_id:
        raise ValueError("Google Sheets ID not configured (set GOOGLE_SHEETS_ID)")

    from services.sheets_gateway import GoogleSheetsStore, load_credentials

    credentials = load_credentials(
        credentials_json=environ.get("GOOGLE_CREDENTIALS", ""),
        credentials_path=store_config["credentials_path"],
    )
    return GoogleSheetsStore(
        spreadsheet_id=spreadsheet_id,
        credentials=credentials,
        timeout_seconds=store_config["timeout_seconds"],
    )


def build_context(config: dict, store=None, notifier=None, clock=None, environ=None) -> AppContext:
    if environ is None:
        environ = os.environ
    layout = create_layout(config)
    if store is None:
        store = create_store(config, layout, environ)
    if notifier is None:
        notifier = create_notifier(config, token=environ.get("SLACK_BOT_TOKEN", ""))
    if clock is None:
        time_config = config["time"]
        clock = StoreClock(
            timezone=time_config["timezone"],
            date_format=time_config["date_format"],
            time_format=time_config["time_format"],
        )

    roster = RosterIndex(store, layout)
    index = OpenShiftIndex(store, layout, clock)
    mutator = StaffRosterMutator(
        store, layout, roster, clock=clock, notifier=notifier
    )
    return AppContext(
        spreadsheet_id=config["store"]["spreadsheet_id"],
        layout=layout,
        clock=clock,
        store=store,
        roster=roster,
        resolver=ShiftStatusResolver(store, layout, roster, clock),
        index=index,
        mutator=mutator,
        engine=ShiftTransitionEngine(
            store, layout, roster, clock, index, mutator, notifier=notifier
        ),
        notifier=notifier,
    )


def bootstrap(context: AppContext) -> None:
    """Break Log シートを用意し、インデックスを構築する"""
    layout = context.layout
    ensure_sheet(
        context.store,
        layout.break_log,
        BREAK_LOG_HEADER,
        layout.break_row(1),
    )
    context.index.rebuild()
