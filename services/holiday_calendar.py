# services/holiday_calendar.py
import logging
from datetime import date, datetime
from typing import Optional

from services.datastore_interface import DataStoreInterface
from services.errors import DataSourceError

logger = logging.getLogger(__name__)


def normalize_holiday(value) -> str:
    """祝日の値を YYYY-MM-DD に正規化（時刻・タイムゾーンは捨てる）"""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    # 記載された暦日部分のみを使う
    return date.fromisoformat(text[:10]).isoformat()


class HolidayCalendar:
    """データストアの祝日テーブルから非稼働日セットを読み込む"""

    def __init__(self, store: DataStoreInterface, date_column: str = "date"):
        self._store = store
        self._date_column = date_column

    async def load(self) -> set[str]:
        """祝日セットを返す（取得失敗時は DataSourceError で実行中断）"""
        rows = await self._store.fetch_holidays()
        holidays = set()
        for row in rows:
            value = row.get(self._date_column)
            if value in (None, ""):
                logger.warning("日付のない祝日行を無視します: %r", row)
                continue
            try:
                holidays.add(normalize_holiday(value))
            except ValueError as e:
                raise DataSourceError(f"祝日の日付を解釈できません: {value!r}") from e
        logger.info("祝日 %d 件を読み込みました", len(holidays))
        return holidays


def is_weekend(target_date: date) -> bool:
    return target_date.weekday() >= 5


def holiday_reason(target_date: date, holidays: set[str]) -> Optional[str]:
    """非稼働日の理由（稼働日なら None）"""
    if is_weekend(target_date):
        return "土曜日" if target_date.weekday() == 5 else "日曜日"
    if target_date.isoformat() in holidays:
        return "祝日"
    return None


def is_working_day(target_date: date, holidays: set[str]) -> bool:
    """土日・祝日でなければ True"""
    return holiday_reason(target_date, holidays) is None
