# graph/nodes/fetch_node.py
import logging
from datetime import date

from graph.state import ReconciliationState
from services.clock import day_window
from services.config_loader import reconciliation_timezone
from services.datastore_interface import DataStoreInterface

logger = logging.getLogger(__name__)


async def fetch_node(
    state: ReconciliationState,
    datastore: DataStoreInterface = None,
    settings: dict = None,
) -> dict:
    """ロスターと当日の勤怠・欠勤記録を取得するノード"""
    tz = reconciliation_timezone(settings)
    start, end = day_window(date.fromisoformat(state["today"]), tz)
    logger.info("取得範囲: %s 〜 %s (UTC)", start.isoformat(), end.isoformat())

    roster = await datastore.fetch_users()
    logger.info("従業員 %d 名を取得しました", len(roster))
    attendance = await datastore.fetch_attendance(start, end)
    absences = await datastore.fetch_absences(start, end)
    logger.info("勤怠 %d 件・欠勤 %d 件を取得しました", len(attendance), len(absences))

    return {"roster": roster, "attendance": attendance, "absences": absences}
