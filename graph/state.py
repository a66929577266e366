from typing import TypedDict, Optional

from services.models import (
    AbsenceRecord,
    AttendanceRecord,
    Employee,
    ReconciliationResult,
    WriteReport,
)


class ReconciliationState(TypedDict):
    today: str                              # YYYY-MM-DD（設定オフセットでの暦日）
    is_working_day: bool                    # 稼働日フラグ
    holiday_reason: Optional[str]           # 非稼働日の理由
    holidays: set[str]                      # 当日実行分の祝日セット
    roster: list[Employee]                  # 全従業員
    attendance: list[AttendanceRecord]      # 当日の勤怠記録
    absences: list[AbsenceRecord]           # 当日の欠勤記録
    result: Optional[ReconciliationResult]  # 突合結果（書き込み対象）
    report: Optional[WriteReport]           # 書き込み結果
    notifications_sent: int                 # 自動退勤通知の送信数


def initial_state(today: str) -> ReconciliationState:
    return {
        "today": today,
        "is_working_day": False,
        "holiday_reason": None,
        "holidays": set(),
        "roster": [],
        "attendance": [],
        "absences": [],
        "result": None,
        "report": None,
        "notifications_sent": 0,
    }
