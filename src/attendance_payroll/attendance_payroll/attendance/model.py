from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import ApprovalTrigger, AttendanceStatus


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one tenant-local calendar day.

    ``version`` is bumped by every successful write and is the compare-and-set
    token for concurrent mutations.
    """

    attendance_id: int
    employee_id: int
    company_id: int
    attendance_date: date
    status: AttendanceStatus = AttendanceStatus.PENDING
    punch_in_at: Optional[datetime] = None
    punch_out_at: Optional[datetime] = None
    working_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    is_late: bool = False
    late_minutes: int = 0
    hours_capped: bool = False
    auto_punched_out: bool = False
    auto_punch_out_at: Optional[datetime] = None
    requires_approval: bool = False
    approval_triggers: tuple[ApprovalTrigger, ...] = ()
    approval_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    punch_in_location: Optional[GeoPoint] = None
    punch_out_location: Optional[GeoPoint] = None
    punch_in_photo: Optional[str] = None
    punch_out_photo: Optional[str] = None
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.punch_in_at is not None and self.punch_out_at is None

    @property
    def is_final(self) -> bool:
        return self.status != AttendanceStatus.PENDING


@dataclass(frozen=True)
class WorkedHours:
    """Hours derived from a punch pair.

    ``raw_hours`` keeps the uncapped figure so capping stays observable.
    """

    working_hours: Decimal
    overtime_hours: Decimal
    raw_hours: Decimal
    capped: bool
