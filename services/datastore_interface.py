from abc import ABC, abstractmethod
from datetime import datetime

from services.models import (
    AbsenceInsert,
    AbsenceRecord,
    AttendanceRecord,
    CheckoutUpdate,
    Employee,
)


class DataStoreInterface(ABC):
    """勤怠データストアの抽象インターフェース

    読み込み失敗は DataSourceError、書き込み失敗は WriteError を送出する。
    """

    @abstractmethod
    async def fetch_users(self) -> list[Employee]:
        """全従業員（ロスター）"""
        ...

    @abstractmethod
    async def fetch_holidays(self) -> list[dict]:
        """祝日テーブルの全行"""
        ...

    @abstractmethod
    async def fetch_attendance(
        self, start: datetime, end: datetime
    ) -> list[AttendanceRecord]:
        """check_in が [start, end) に入る勤怠記録"""
        ...

    @abstractmethod
    async def fetch_absences(self, start: datetime, end: datetime) -> list[AbsenceRecord]:
        """created_at が [start, end) に入る欠勤記録"""
        ...

    @abstractmethod
    async def update_checkout(self, update: CheckoutUpdate) -> None:
        """勤怠記録1件に退勤時刻と自動退勤フラグを書き込む"""
        ...

    @abstractmethod
    async def insert_absences(self, rows: list[AbsenceInsert]) -> None:
        """欠勤記録を一括登録"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """リソース解放"""
        ...
