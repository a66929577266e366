# schedulers/scheduler.py
from datetime import timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from services.clock import parse_time


class AttendanceScheduler:
    """APSchedulerによる日次突合・リマインダーの定期実行管理"""

    def __init__(self, run_time: str, job_func: Callable, tz: timezone):
        self._run_time = parse_time(run_time)
        self._job_func = job_func
        self._tz = tz
        self._scheduler = BackgroundScheduler(timezone=tz)
        self._scheduler.add_job(
            self._job_func,
            trigger=CronTrigger(
                hour=self._run_time.hour, minute=self._run_time.minute, timezone=tz
            ),
            id="attendance_reconciliation",
            replace_existing=True,
        )

    def add_reminder(self, index: int, time_str: str, send: Callable[[], object]):
        """平日の指定時刻にリマインダーを送るジョブを追加"""
        at = parse_time(time_str)
        self._scheduler.add_job(
            send,
            trigger=CronTrigger(
                day_of_week="mon-fri", hour=at.hour, minute=at.minute, timezone=self._tz
            ),
            id=f"reminder_{index}",
            replace_existing=True,
        )

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
