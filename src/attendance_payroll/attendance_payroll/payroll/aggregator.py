from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_days, local_date, month_bounds, now_utc
from ..common.validators import require_period
from ..core.enums import AttendanceStatus, DayCategory
from ..policy.model import Policy
from ..policy.store import PolicyStore
from .model import MonthlySummary

logger = logging.getLogger(__name__)


def classify(record: AttendanceRecord, policy: Policy) -> DayCategory:
    if record.status in (AttendanceStatus.ABSENT, AttendanceStatus.REJECTED):
        return DayCategory.ABSENT
    if record.status == AttendanceStatus.LEAVE:
        return DayCategory.LEAVE
    if record.status == AttendanceStatus.PENDING:
        return DayCategory.PENDING
    if record.working_hours < Decimal(policy.half_day_threshold_hours):
        return DayCategory.HALF
    return DayCategory.FULL


class PayrollAggregator:
    """Reads a month of attendance and counts days by payroll category."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        policies: PolicyStore,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._policies = policies
        self._clock = clock

    def aggregate(
        self,
        employee_id: int,
        company_id: int,
        month: int,
        year: int,
        *,
        today: Optional[date] = None,
    ) -> MonthlySummary:
        month, year = require_period(month, year)
        policy = self._policies.get(company_id)
        first, last = month_bounds(year, month)
        records = self._attendance.list_for_employee_between(int(employee_id), int(company_id), first, last)

        counts = {category: 0 for category in DayCategory}
        late_minutes = 0
        overtime = working = Decimal("0")
        for rec in records:
            counts[classify(rec, policy)] += 1
            if rec.status == AttendanceStatus.APPROVED:
                late_minutes += int(rec.late_minutes)
                overtime += rec.overtime_hours
                working += rec.working_hours

        today = today or local_date(self._clock(), policy.zone)
        seen = {rec.attendance_date for rec in records}
        missing = tuple(d for d in iter_days(first, min(last, today)) if d not in seen)
        if missing:
            logger.warning(
                "attendance gap employee=%s company=%s period=%s-%02d missing_days=%s first_missing=%s",
                employee_id,
                company_id,
                year,
                month,
                len(missing),
                missing[0].isoformat(),
            )

        return MonthlySummary(
            employee_id=int(employee_id),
            company_id=int(company_id),
            month=month,
            year=year,
            full_days=counts[DayCategory.FULL],
            half_days=counts[DayCategory.HALF],
            absent_days=counts[DayCategory.ABSENT],
            leave_days=counts[DayCategory.LEAVE],
            pending_days=counts[DayCategory.PENDING],
            records_found=len(records),
            late_minutes=late_minutes,
            overtime_hours=overtime,
            working_hours=working,
            missing_dates=missing,
        )
