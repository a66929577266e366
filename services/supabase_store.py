# services/supabase_store.py
import asyncio
import logging
from datetime import datetime
from typing import Optional

import aiohttp

from services.clock import to_utc_iso
from services.datastore_interface import DataStoreInterface
from services.errors import DataSourceError, WriteError
from services.models import (
    AbsenceInsert,
    AbsenceRecord,
    AttendanceRecord,
    CheckoutUpdate,
    Employee,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLES = {
    "users": "users",
    "holidays": "holidays",
    "attendance": "attendance_logs",
    "absences": "absentees",
}


class SupabaseStore(DataStoreInterface):
    """Supabase (PostgREST) REST APIによるデータストア"""

    def __init__(
        self,
        url: str,
        key: str,
        tables: Optional[dict] = None,
        timeout_seconds: float = 30,
    ):
        self._base_url = url.rstrip("/") + "/rest/v1"
        self._key = key
        self._tables = {**DEFAULT_TABLES, **(tables or {})}
        self._timeout = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """セッションを取得（実行ごとに生成し close で破棄）"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "apikey": self._key,
                    "Authorization": f"Bearer {self._key}",
                    "Content-Type": "application/json",
                },
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    def _table_url(self, name: str) -> str:
        return f"{self._base_url}/{self._tables[name]}"

    async def _select(self, name: str, params: list[tuple[str, str]]) -> list[dict]:
        table = self._tables[name]
        try:
            session = await self._get_session()
            async with session.get(self._table_url(name), params=params) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise DataSourceError(
                        f"{table} の取得に失敗しました (HTTP {response.status}): {body}"
                    )
                rows = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise DataSourceError(f"{table} の取得に失敗しました: {e}") from e

        if not isinstance(rows, list):
            raise DataSourceError(f"{table} の応答が配列ではありません")
        logger.debug("%s: %d 件取得", table, len(rows))
        return rows

    @staticmethod
    def _window_params(column: str, start: datetime, end: datetime) -> list[tuple[str, str]]:
        return [
            ("select", "*"),
            (column, f"gte.{to_utc_iso(start)}"),
            (column, f"lt.{to_utc_iso(end)}"),
        ]

    async def fetch_users(self) -> list[Employee]:
        rows = await self._select("users", [("select", "*")])
        return [self._parse(Employee, row, "users") for row in rows]

    async def fetch_holidays(self) -> list[dict]:
        return await self._select("holidays", [("select", "date")])

    async def fetch_attendance(
        self, start: datetime, end: datetime
    ) -> list[AttendanceRecord]:
        rows = await self._select("attendance", self._window_params("check_in", start, end))
        return [self._parse(AttendanceRecord, row, "attendance") for row in rows]

    async def fetch_absences(self, start: datetime, end: datetime) -> list[AbsenceRecord]:
        rows = await self._select("absences", self._window_params("created_at", start, end))
        return [self._parse(AbsenceRecord, row, "absences") for row in rows]

    def _parse(self, model, row: dict, name: str):
        try:
            return model.from_row(row)
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(
                f"{self._tables[name]} の行を解釈できません: {row!r} ({e})"
            ) from e

    async def update_checkout(self, update: CheckoutUpdate) -> None:
        payload = {
            "check_out": to_utc_iso(update.check_out),
            "autocheckout": update.autocheckout,
        }
        try:
            session = await self._get_session()
            async with session.patch(
                self._table_url("attendance"),
                params=[("id", f"eq.{update.record_id}")],
                json=payload,
                headers={"Prefer": "return=minimal"},
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise WriteError(
                        f"勤怠 {update.record_id}: HTTP {response.status}: {body}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise WriteError(f"勤怠 {update.record_id}: {e}") from e

    async def insert_absences(self, rows: list[AbsenceInsert]) -> None:
        payload = [row.to_row() for row in rows]
        try:
            session = await self._get_session()
            async with session.post(
                self._table_url("absences"),
                json=payload,
                headers={"Prefer": "return=minimal"},
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise WriteError(f"HTTP {response.status}: {body}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise WriteError(str(e)) from e

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
