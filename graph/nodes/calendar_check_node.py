# graph/nodes/calendar_check_node.py
import logging
from datetime import date

from graph.state import ReconciliationState
from services.holiday_calendar import (
    HolidayCalendar,
    holiday_reason,
    is_weekend,
    is_working_day,
)

logger = logging.getLogger(__name__)


async def calendar_check_node(
    state: ReconciliationState,
    calendar: HolidayCalendar = None,
) -> dict:
    """今日が突合対象の稼働日かを確認するノード

    土日は祝日テーブルを読まずに即終了する。
    """
    today = date.fromisoformat(state["today"])

    if is_weekend(today):
        reason = holiday_reason(today, set())
        logger.info("%s は%sのため突合をスキップします", state["today"], reason)
        return {"is_working_day": False, "holiday_reason": reason}

    holidays = await calendar.load()
    working = is_working_day(today, holidays)
    reason = None if working else holiday_reason(today, holidays)
    if not working:
        logger.info("%s は%sのため突合をスキップします", state["today"], reason)

    return {
        "holidays": holidays,
        "is_working_day": working,
        "holiday_reason": reason,
    }
