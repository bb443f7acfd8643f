from dataclasses import dataclass
from typing import Optional

CLOCKED_IN = "clocked-in"
ON_BREAK = "on-break"
CLOCKED_OUT = "clocked-out"


@dataclass(frozen=True)
class StaffRecord:
    name: str
    department: str = ""
    position: str = ""
    hourly_wage: float = 0.0
    status: str = "Active"

    def to_row(self) -> list:
        return [self.name, self.department, self.position, self.hourly_wage, self.status]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "department": self.department,
            "position": self.position,
            "hourlyWage": self.hourly_wage,
            "status": self.status,
        }


@dataclass(frozen=True)
class StatusView:
    name: str
    department: str
    sign_in_time: str
    status: str  # clocked-in / on-break / clocked-out

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "department": self.department,
            "signInTime": self.sign_in_time,
            "status": self.status,
        }


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    message: str
    timestamp: str
    break_duration: Optional[int] = None
    total_break_minutes: Optional[int] = None

    def to_dict(self) -> dict:
        body = {"success": self.success, "message": self.message}
        if self.break_duration is not None:
            body["breakDuration"] = self.break_duration
        if self.total_break_minutes is not None:
            body["totalBreakMinutes"] = self.total_break_minutes
        return body


@dataclass
class OpenShift:
    """(氏名, 日付) ごとの未完了行の所在。書き込み前に必ず再検証する"""

    aggregate_row: Optional[int] = None
    person_row: Optional[int] = None
    break_row: Optional[int] = None
    status: Optional[str] = None
