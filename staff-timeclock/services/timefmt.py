# services/timefmt.py
"""シート上の日付・時刻の正規化

書き込みは設定された書式（既定: MM/DD/YYYY と 24時間制 HH:MM:SS）で行う。
読み込みは過去データとの互換のため、複数の書式とシリアル値を受け付ける。
"""
import re
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

# Google Sheets のシリアル日付の起点
SHEETS_EPOCH = date(1899, 12, 30)

DATE_FORMATS = ("%m/%d/%Y", "%Y-%m-%d", "%m/%d/%y", "%Y/%m/%d")
TIME_FORMATS = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p")

_SERIAL_RE = re.compile(r"^\d+(\.\d+)?$")


def _now(tz) -> datetime:
    """テスト時にモック可能な現在時刻取得"""
    return datetime.now(tz)


class StoreClock:
    """デプロイ先タイムゾーンでの「今日」「現在時刻」と書式化を担う"""

    def __init__(
        self,
        timezone: str = "Europe/London",
        date_format: str = "%m/%d/%Y",
        time_format: str = "%H:%M:%S",
    ):
        self._tz = pytz.timezone(timezone)
        self._date_format = date_format
        self._time_format = time_format

    @property
    def tz(self):
        return self._tz

    def now(self) -> datetime:
        return _now(self._tz)

    def today(self) -> date:
        return self.now().date()

    def format_date(self, value: date) -> str:
        return value.strftime(self._date_format)

    def format_time(self, value) -> str:
        return value.strftime(self._time_format)


def _clean(value) -> str:
    # en-US の時刻表記は AM/PM の前に狭いノーブレークスペースを入れることがある
    return str(value).replace("\u202f", " ").replace("\xa0", " ").strip()


def parse_sheet_date(value) -> Optional[date]:
    """セル値を暦日に変換する。解釈できなければ None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return SHEETS_EPOCH + timedelta(days=int(value))

    text = _clean(value)
    if not text:
        return None
    if _SERIAL_RE.match(text):
        return SHEETS_EPOCH + timedelta(days=int(float(text)))

    # 時刻付き ("10/19/2026 9:00:00", "2026-10-19T09:00:00") は日付部分だけ使う
    head = re.split(r"[ T,]", text, maxsplit=1)[0]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(head, fmt).date()
        except ValueError:
            continue
    return None


def parse_sheet_time(value) -> Optional[time]:
    """セル値を時刻に変換する。解釈できなければ None"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, (int, float)):
        return _fraction_to_time(float(value))

    text = _clean(value).upper()
    if not text:
        return None
    if _SERIAL_RE.match(text):
        return _fraction_to_time(float(text))
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def _fraction_to_time(serial: float) -> time:
    seconds = int(round((serial % 1) * 86400)) % 86400
    return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)


def minutes_between(start: time, end: time) -> int:
    """時刻のみで経過分数を求める（切り捨て）。日付は見ないので日跨ぎは24時間を足す"""
    start_s = start.hour * 3600 + start.minute * 60 + start.second
    end_s = end.hour * 3600 + end.minute * 60 + end.second
    elapsed = end_s - start_s
    if elapsed < 0:
        elapsed += 86400
    return elapsed // 60
