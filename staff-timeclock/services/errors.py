"""タイムクロックの例外階層

HTTP層では status_code をそのままレスポンスのステータスに使う。
"""
from typing import Optional


class TimeclockError(Exception):
    """全ての業務例外の基底クラス"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__


class ValidationError(TimeclockError):
    """入力値の不備（クライアント側の誤り）"""

    status_code = 400


class UnknownStaff(TimeclockError):
    """ロスターに存在しない氏名"""

    status_code = 400

    def __init__(self, name: str):
        super().__init__(f"Staff member not found: {name}")
        self.name = name


class NotFound(TimeclockError):
    """行・スタッフの検索失敗（状態の矛盾とは区別する）"""

    status_code = 404


class StateConflict(TimeclockError):
    """現在の状態では許可されない遷移"""

    status_code = 400


class AlreadyClockedIn(StateConflict):
    def __init__(self, name: str):
        super().__init__(f"{name} is already clocked in today!")


class ShiftAlreadyFinished(StateConflict):
    def __init__(self, name: str):
        super().__init__(f"{name} has already finished today's shift")


class NoActiveShift(StateConflict):
    def __init__(self, name: str):
        super().__init__(f"No active session found for {name} to break from!")


class NoActiveBreak(StateConflict):
    def __init__(self, name: str):
        super().__init__(f"No active break found for {name}!")


class NoOpenShift(StateConflict):
    def __init__(self, name: str):
        super().__init__(f"No clock in found for {name} today!")


class DuplicateStaff(StateConflict):
    def __init__(self, name: str):
        super().__init__(f"Staff member already exists: {name}")


class StoreUnavailable(TimeclockError):
    """スプレッドシートとの通信失敗（ネットワーク・認証・クォータ）"""

    status_code = 500


class PartialWrite(StoreUnavailable):
    """複数書き込みの途中で失敗した。ロールバックはしない。"""

    def __init__(
        self,
        message: str,
        completed_steps: list[str],
        failed_step: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.completed_steps = completed_steps
        self.failed_step = failed_step
        self.cause = cause
