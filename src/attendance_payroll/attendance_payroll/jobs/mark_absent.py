from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.rules import shift_end_at
from ..common.datetime_utils import local_date, now_utc
from ..core.constants import ATTENDANCE_TRACKED_ROLES, DEFAULT_JOB_CHUNK_SIZE, DEFAULT_JOB_MAX_WORKERS
from ..core.enums import AttendanceStatus
from ..integrations.audit import SYSTEM_ACTOR, AuditLog, safe_audit
from ..policy.store import PolicyStore
from ..users.company_model import Company
from ..users.company_repository import CompanyRepository
from ..users.repository import EmployeeRepository
from .base import BatchResult, run_per_tenant

logger = logging.getLogger(__name__)

JOB_NAME = "mark_absent"


class MarkAbsentJob:
    """Creates an ABSENT record for every tracked employee with nothing for yesterday."""

    def __init__(
        self,
        companies: CompanyRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        policies: PolicyStore,
        *,
        audit: AuditLog,
        clock: Callable[[], datetime] = now_utc,
        chunk_size: int = DEFAULT_JOB_CHUNK_SIZE,
        max_workers: int = DEFAULT_JOB_MAX_WORKERS,
    ):
        self._companies = companies
        self._employees = employees
        self._attendance = attendance
        self._policies = policies
        self._audit = audit
        self._clock = clock
        self._chunk_size = chunk_size
        self._max_workers = max_workers

    def run(self, now: Optional[datetime] = None) -> BatchResult:
        now = now or self._clock()
        return run_per_tenant(
            JOB_NAME,
            self._companies.list_active(),
            lambda company: self.run_for_company(company, now),
            chunk_size=self._chunk_size,
            max_workers=self._max_workers,
        )

    def run_for_company(self, company: Company, now: datetime) -> BatchResult:
        policy = self._policies.get(company.company_id)
        day: date = local_date(now, policy.zone) - timedelta(days=1)
        if now < shift_end_at(day, policy):
            logger.debug("mark absent skipped company=%s: shift of %s still running", company.company_id, day)
            return BatchResult()

        result = BatchResult()
        for employee in self._employees.list_active(company.company_id, roles=ATTENDANCE_TRACKED_ROLES):
            if self._attendance.get_for_employee_and_date(employee.employee_id, company.company_id, day):
                continue
            stored = self._attendance.insert_if_absent(
                AttendanceRecord(
                    attendance_id=0,
                    employee_id=employee.employee_id,
                    company_id=company.company_id,
                    attendance_date=day,
                    status=AttendanceStatus.ABSENT,
                    approval_reason="No attendance recorded",
                )
            )
            if stored is None:
                continue
            result.processed += 1
            safe_audit(
                self._audit,
                SYSTEM_ACTOR,
                "MARK_ABSENT",
                "ATTENDANCE",
                stored.attendance_id,
                {"employee_id": employee.employee_id, "attendance_date": day.isoformat()},
            )
        return result
