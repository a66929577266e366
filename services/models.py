# services/models.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from services.clock import parse_timestamp

_TRUTHY = {"yes", "true", "1", "y"}


class AbsenceType(str, Enum):
    ABSENT = "Absent"
    NOT_ABSENT = "Not Absent"


class AbsenceTiming(str, Enum):
    FULL_DAY = "Full Day"


class OutcomeAction(str, Enum):
    MARK_ABSENT_FULL_DAY = "mark_absent_full_day"
    SCHEDULE_AUTO_CHECKOUT = "schedule_auto_checkout"
    NO_ACTION_NEEDED = "no_action_needed"
    SKIP_ALREADY_RECORDED = "skip_already_recorded"


def _is_truthy(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def _optional_timestamp(value) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return parse_timestamp(value)


@dataclass(frozen=True)
class Employee:
    id: str
    name: Optional[str] = None
    recipient_token: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Employee":
        return cls(
            id=str(row["id"]),
            name=row.get("full_name") or row.get("name"),
            recipient_token=row.get("fcm_token") or row.get("fcmtoken"),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    id: str
    employee_id: str
    check_in: Optional[datetime]
    check_out: Optional[datetime] = None
    autocheckout: bool = False

    @classmethod
    def from_row(cls, row: dict) -> "AttendanceRecord":
        return cls(
            id=str(row["id"]),
            employee_id=str(row["user_id"]),
            check_in=_optional_timestamp(row.get("check_in")),
            check_out=_optional_timestamp(row.get("check_out")),
            autocheckout=_is_truthy(row.get("autocheckout")),
        )


@dataclass(frozen=True)
class AbsenceRecord:
    id: str
    employee_id: str
    absence_type: str
    timing: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "AbsenceRecord":
        return cls(
            id=str(row["id"]),
            employee_id=str(row["user_id"]),
            absence_type=row.get("absentee_type") or AbsenceType.ABSENT.value,
            timing=row.get("absentee_Timing"),
            created_at=_optional_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class ReconciliationOutcome:
    """従業員1人分の判定結果（永続化はしない）"""
    employee_id: str
    action: OutcomeAction
    record_id: Optional[str] = None
    checkout_at: Optional[datetime] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class CheckoutUpdate:
    record_id: str
    employee_id: str
    check_out: datetime
    autocheckout: bool = True


@dataclass(frozen=True)
class AbsenceInsert:
    employee_id: str
    absence_type: AbsenceType
    timing: Optional[AbsenceTiming] = None

    def to_row(self) -> dict:
        row = {"user_id": self.employee_id, "absentee_type": self.absence_type.value}
        if self.timing is not None:
            row["absentee_Timing"] = self.timing.value
        return row


@dataclass
class ReconciliationResult:
    outcomes: list[ReconciliationOutcome] = field(default_factory=list)
    checkout_updates: list[CheckoutUpdate] = field(default_factory=list)
    absence_inserts: list[AbsenceInsert] = field(default_factory=list)


@dataclass
class WriteReport:
    applied_checkouts: list[CheckoutUpdate] = field(default_factory=list)
    failed_checkouts: list[CheckoutUpdate] = field(default_factory=list)
    inserted_absences: int = 0
