# tests/conftest.py
from datetime import datetime, timezone

import pytest

from services.datastore_interface import DataStoreInterface
from services.errors import DataSourceError, WriteError
from services.models import AbsenceRecord, AttendanceRecord, Employee


def utc(day, hour, minute=0):
    return datetime(2026, 10, day, hour, minute, tzinfo=timezone.utc)


class FakeStore(DataStoreInterface):
    """メモリ上のデータストア（呼び出し記録付き）"""

    def __init__(self, users=None, holidays=None, attendance=None, absences=None):
        self.users = list(users or [])
        self.holidays = list(holidays or [])
        self.attendance = list(attendance or [])
        self.absences = list(absences or [])
        self.calls: list[str] = []
        self.updates = []
        self.inserted = []
        self.fail_reads: set[str] = set()
        self.fail_update_ids: set[str] = set()
        self.fail_insert = False
        self.closed = False

    def _read(self, name):
        self.calls.append(name)
        if name in self.fail_reads:
            raise DataSourceError(f"{name} unavailable")

    async def fetch_users(self):
        self._read("users")
        return list(self.users)

    async def fetch_holidays(self):
        self._read("holidays")
        return list(self.holidays)

    async def fetch_attendance(self, start, end):
        self._read("attendance")
        return [r for r in self.attendance if r.check_in and start <= r.check_in < end]

    async def fetch_absences(self, start, end):
        self._read("absences")
        return [a for a in self.absences if a.created_at is None or start <= a.created_at < end]

    async def update_checkout(self, update):
        self.calls.append("update_checkout")
        if update.record_id in self.fail_update_ids:
            raise WriteError(f"update rejected: {update.record_id}")
        self.updates.append(update)

    async def insert_absences(self, rows):
        self.calls.append("insert_absences")
        if self.fail_insert:
            raise WriteError("insert rejected")
        self.inserted.extend(rows)

    async def close(self):
        self.closed = True


@pytest.fixture
def roster():
    return [Employee("E1", recipient_token="tok-1"), Employee("E2"), Employee("E3")]


@pytest.fixture
def make_store(roster):
    def _make(**kwargs):
        kwargs.setdefault("users", roster)
        return FakeStore(**kwargs)
    return _make


def attendance(record_id, employee_id, check_in, check_out=None, autocheckout=False):
    return AttendanceRecord(record_id, employee_id, check_in, check_out, autocheckout)


def absence(record_id, employee_id, created_at=None):
    return AbsenceRecord(record_id, employee_id, "Absent", "Full Day", created_at)
