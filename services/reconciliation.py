# services/reconciliation.py
"""当日の勤怠・欠勤スナップショットとロスターを突き合わせる純粋関数群

入力（ロスター・勤怠・欠勤）と自動退勤時刻だけから結果が決まる。
I/O はここでは一切行わない。
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from services.models import (
    AbsenceInsert,
    AbsenceRecord,
    AbsenceTiming,
    AbsenceType,
    AttendanceRecord,
    CheckoutUpdate,
    Employee,
    OutcomeAction,
    ReconciliationOutcome,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)


def index_attendance(attendance: Iterable[AttendanceRecord]) -> dict[str, AttendanceRecord]:
    """従業員IDごとの勤怠記録（最初の1件を採用）"""
    index: dict[str, AttendanceRecord] = {}
    for record in attendance:
        if record.employee_id in index:
            logger.warning(
                "従業員 %s の勤怠記録が複数あります。%s を採用し %s を無視します",
                record.employee_id,
                index[record.employee_id].id,
                record.id,
            )
            continue
        index[record.employee_id] = record
    return index


def classify(
    employee: Employee,
    record: Optional[AttendanceRecord],
    already_absent: bool,
    checkout_at: datetime,
) -> ReconciliationOutcome:
    """従業員1人分の判定"""
    if record is None:
        if already_absent:
            return ReconciliationOutcome(employee.id, OutcomeAction.SKIP_ALREADY_RECORDED)
        return ReconciliationOutcome(employee.id, OutcomeAction.MARK_ABSENT_FULL_DAY)

    if record.check_in is None:
        return ReconciliationOutcome(
            employee.id, OutcomeAction.NO_ACTION_NEEDED, record_id=record.id, detail="no_check_in"
        )

    if record.check_out is None:
        if record.autocheckout:
            return ReconciliationOutcome(
                employee.id,
                OutcomeAction.NO_ACTION_NEEDED,
                record_id=record.id,
                detail="auto_checkout_pending",
            )
        return ReconciliationOutcome(
            employee.id,
            OutcomeAction.SCHEDULE_AUTO_CHECKOUT,
            record_id=record.id,
            checkout_at=checkout_at,
        )

    return ReconciliationOutcome(
        employee.id,
        OutcomeAction.NO_ACTION_NEEDED,
        record_id=record.id,
        detail="auto_checked_out" if record.autocheckout else "checked_out",
    )


def dedupe_absences(entries: Iterable[AbsenceInsert]) -> list[AbsenceInsert]:
    """従業員IDで重複排除（最初の1件を残す）"""
    seen: set[str] = set()
    unique = []
    for entry in entries:
        if entry.employee_id in seen:
            continue
        seen.add(entry.employee_id)
        unique.append(entry)
    return unique


def reconcile(
    roster: Iterable[Employee],
    attendance: Iterable[AttendanceRecord],
    absences: Iterable[AbsenceRecord],
    checkout_at: datetime,
) -> ReconciliationResult:
    """ロスター順に各従業員を判定し、書き込み対象を返す"""
    attendance_by_employee = index_attendance(attendance)
    absent_ids = {absence.employee_id for absence in absences}

    result = ReconciliationResult()
    absence_entries: list[AbsenceInsert] = []
    scheduled_records: set[str] = set()
    processed: set[str] = set()

    for employee in roster:
        if employee.id in processed:
            logger.debug("従業員 %s はロスター上で重複しています。スキップ", employee.id)
            continue
        processed.add(employee.id)

        record = attendance_by_employee.get(employee.id)
        outcome = classify(employee, record, employee.id in absent_ids, checkout_at)
        result.outcomes.append(outcome)

        if outcome.action is OutcomeAction.MARK_ABSENT_FULL_DAY:
            logger.info("従業員 %s: 出勤記録なし。終日欠勤として登録します", employee.id)
            absence_entries.append(
                AbsenceInsert(employee.id, AbsenceType.ABSENT, AbsenceTiming.FULL_DAY)
            )
        elif outcome.action is OutcomeAction.SKIP_ALREADY_RECORDED:
            logger.info("従業員 %s: 欠勤登録済み。スキップ", employee.id)
        elif outcome.action is OutcomeAction.SCHEDULE_AUTO_CHECKOUT:
            if outcome.record_id in scheduled_records:
                continue
            scheduled_records.add(outcome.record_id)
            logger.info(
                "従業員 %s: 退勤記録なし。勤怠 %s を %s で自動退勤します",
                employee.id,
                outcome.record_id,
                checkout_at.isoformat(),
            )
            result.checkout_updates.append(
                CheckoutUpdate(outcome.record_id, employee.id, checkout_at)
            )
        else:
            logger.info("従業員 %s: 対応不要 (%s)", employee.id, outcome.detail)
            absence_entries.append(AbsenceInsert(employee.id, AbsenceType.NOT_ABSENT))

    # "Not Absent" は重複排除のためだけに通し、書き込み前に落とす
    result.absence_inserts = [
        entry
        for entry in dedupe_absences(absence_entries)
        if entry.absence_type is not AbsenceType.NOT_ABSENT
    ]
    logger.info(
        "突合結果: 従業員 %d 名, 自動退勤 %d 件, 欠勤登録 %d 件",
        len(result.outcomes),
        len(result.checkout_updates),
        len(result.absence_inserts),
    )
    return result
