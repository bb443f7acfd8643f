# services/write_steps.py
"""遷移ごとの書き込みを順序付きステップとして実行する

ストアにトランザクションはないので、途中で失敗しても既に書いた内容は戻さない。
代わりに、どこまで書けてどこで失敗したかを記録し運用者に通知する。
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable

from services.errors import PartialWrite, StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass
class WriteStep:
    name: str
    action: Callable[[], Any]


def run_steps(steps: list[WriteStep], subject: str, notifier=None) -> list:
    """ステップを順に実行し、各ステップの戻り値を返す

    最初のステップで失敗した場合は何も書かれていないので、そのまま送出する。
    2番目以降で失敗した場合は PartialWrite を送出する。
    """
    completed: list[str] = []
    results = []
    for step in steps:
        try:
            results.append(step.action())
        except StoreUnavailable as e:
            if not completed:
                raise
            message = (
                f"{subject}: step '{step.name}' failed after "
                f"[{', '.join(completed)}]; manual reconciliation required ({e.message})"
            )
            logger.error("partial write: %s", message)
            if notifier is not None:
                notifier.send_error(message)
            raise PartialWrite(message, completed, step.name, cause=e) from e
        completed.append(step.name)
    return results
