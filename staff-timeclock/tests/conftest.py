from datetime import datetime
from unittest.mock import MagicMock

import pytest

from services.config_loader import load_config
from services.context import bootstrap, build_context
from services.layout import BREAK_LOG_HEADER, DASHBOARD_HEADER, ROSTER_HEADER
from services.memory_gateway import InMemoryStore
from services.timefmt import StoreClock


class FixedClock(StoreClock):
    """テスト用の固定時計"""

    def __init__(self, current: datetime):
        super().__init__(timezone="Europe/London")
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, hour: int, minute: int = 0, second: int = 0):
        self.current = self.current.replace(hour=hour, minute=minute, second=second)


ROSTER = [
    ["Lisa", "ADMIN", "Manager", "£12.50", "Active"],
    ["Clare H", "STAFF", "Barista", "11.00", "Active"],
]


def make_store(roster=None, dashboard=None, break_log=None, **person_sheets) -> InMemoryStore:
    sheets = {
        "Staff Roster": [ROSTER_HEADER] + (ROSTER if roster is None else roster),
        "Dashboard": [DASHBOARD_HEADER] + (dashboard or []),
        "Break Log": [BREAK_LOG_HEADER] + (break_log or []),
    }
    sheets.update(person_sheets)
    return InMemoryStore(sheets)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 2, 24, 9, 0, 0))


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def context(store, clock, notifier):
    config = load_config("nonexistent.yaml", environ={})
    ctx = build_context(config, store=store, notifier=notifier, clock=clock, environ={})
    bootstrap(ctx)
    return ctx


@pytest.fixture
def store_factory():
    return make_store
