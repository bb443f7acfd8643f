# schedulers/scheduler.py
import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class IndexRefreshScheduler:
    """APSchedulerによるインデックス再構築の定期実行

    シートを直接編集された場合や、別プロセスからの書き込みを取り込む。
    """

    def __init__(self, interval_minutes: int, job_func: Callable):
        self._interval = interval_minutes
        self._job_func = job_func
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._run,
            trigger=IntervalTrigger(minutes=self._interval),
            id="open_shift_index_refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def _run(self):
        try:
            self._job_func()
        except Exception:
            # 失敗しても次回の実行で再構築する
            logger.exception("Open-shift index refresh failed")

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
