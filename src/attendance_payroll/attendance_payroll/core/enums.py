from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles as stored on the employee row."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    ACCOUNTANT = "ACCOUNTANT"
    STAFF = "STAFF"


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AttendanceStatus(str, Enum):
    """Lifecycle status of one attendance day."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"


class ApprovalTrigger(str, Enum):
    """Named reasons a closed attendance day needs a manager's eye."""

    LATE_ARRIVAL = "LATE_ARRIVAL"
    UNDER_MIN_HOURS = "UNDER_MIN_HOURS"
    OVERTIME = "OVERTIME"
    AUTO_PUNCH_OUT = "AUTO_PUNCH_OUT"


class CorrectionType(str, Enum):
    MISSED_PUNCH_IN = "MISSED_PUNCH_IN"
    MISSED_PUNCH_OUT = "MISSED_PUNCH_OUT"


class RequestStatus(str, Enum):
    """Review state of a correction request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SalaryType(str, Enum):
    MONTHLY = "MONTHLY"
    DAILY = "DAILY"
    HOURLY = "HOURLY"


class SalaryStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class BreakdownType(str, Enum):
    """Salary line item kinds. Earnings are positive, the rest negative."""

    BASE_SALARY = "BASE_SALARY"
    OVERTIME = "OVERTIME"
    PF_DEDUCTION = "PF_DEDUCTION"
    ESI_DEDUCTION = "ESI_DEDUCTION"
    LATE_PENALTY = "LATE_PENALTY"
    ABSENCE_DEDUCTION = "ABSENCE_DEDUCTION"
    PAYMENT = "PAYMENT"
    DEDUCTION = "DEDUCTION"
    RECOVERY = "RECOVERY"
    ADVANCE = "ADVANCE"

    @property
    def is_earning(self) -> bool:
        return self in _EARNINGS

    @property
    def is_manual(self) -> bool:
        return self in _MANUAL


_EARNINGS = frozenset(
    {BreakdownType.BASE_SALARY, BreakdownType.OVERTIME, BreakdownType.PAYMENT, BreakdownType.ADVANCE}
)
_MANUAL = frozenset(
    {BreakdownType.PAYMENT, BreakdownType.ADVANCE, BreakdownType.DEDUCTION, BreakdownType.RECOVERY}
)


class DayCategory(str, Enum):
    """Payroll classification of one attendance day."""

    FULL = "FULL"
    HALF = "HALF"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"
    PENDING = "PENDING"


class NotificationChannel(str, Enum):
    IN_APP = "IN_APP"
    PUSH = "PUSH"
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
