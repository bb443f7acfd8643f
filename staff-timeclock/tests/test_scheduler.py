# tests/test_scheduler.py
from unittest.mock import MagicMock, patch

from schedulers.scheduler import IndexRefreshScheduler


def test_scheduler_creation():
    """スケジューラが正しく生成されること"""
    scheduler = IndexRefreshScheduler(
        interval_minutes=10,
        job_func=MagicMock(),
    )
    assert scheduler._interval == 10
    job = scheduler._scheduler.get_job("open_shift_index_refresh")
    assert job is not None


def test_scheduler_start_stop():
    """スケジューラの開始・停止"""
    mock_func = MagicMock()
    scheduler = IndexRefreshScheduler(interval_minutes=10, job_func=mock_func)

    with patch.object(scheduler._scheduler, "start") as mock_start:
        scheduler.start()
        mock_start.assert_called_once()

    with patch.object(scheduler._scheduler, "shutdown") as mock_shutdown:
        scheduler.stop()
        mock_shutdown.assert_called_once_with(wait=False)


def test_job_failure_does_not_propagate():
    """再構築ジョブが失敗してもスケジューラを止めないこと"""
    job = MagicMock(side_effect=RuntimeError("quota"))
    scheduler = IndexRefreshScheduler(interval_minutes=10, job_func=job)

    scheduler._run()

    job.assert_called_once()
