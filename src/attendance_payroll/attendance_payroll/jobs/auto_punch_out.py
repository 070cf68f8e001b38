from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.rules import auto_punch_out_deadline
from ..common.datetime_utils import hours_between, local_date, now_utc, quantize_hours
from ..core.constants import AUTO_PUNCH_OUT_REASON, DEFAULT_JOB_CHUNK_SIZE, DEFAULT_JOB_MAX_WORKERS
from ..core.enums import ApprovalTrigger, AttendanceStatus, NotificationChannel
from ..integrations.audit import SYSTEM_ACTOR, AuditLog, safe_audit
from ..integrations.notifications import Notifier, safe_notify
from ..policy.model import Policy
from ..policy.store import PolicyStore
from ..users.company_model import Company
from ..users.company_repository import CompanyRepository
from .base import BatchResult, run_per_tenant

logger = logging.getLogger(__name__)

JOB_NAME = "auto_punch_out"


def close_forgotten(record: AttendanceRecord, deadline: datetime, policy: Policy) -> AttendanceRecord:
    """The record as it looks once the system punches it out at ``deadline``."""
    raw = max(Decimal("0"), quantize_hours(hours_between(record.punch_in_at, deadline)))
    cap = Decimal(policy.max_daily_hours)
    return replace(
        record,
        status=AttendanceStatus.PENDING,
        punch_out_at=deadline,
        working_hours=min(raw, cap),
        overtime_hours=Decimal("0"),
        hours_capped=raw > cap,
        auto_punched_out=True,
        auto_punch_out_at=deadline,
        requires_approval=True,
        approval_triggers=(ApprovalTrigger.AUTO_PUNCH_OUT,),
        approval_reason=AUTO_PUNCH_OUT_REASON,
    )


class AutoPunchOutJob:
    """Closes punches left open past shift end + buffer. Safe to re-run."""

    def __init__(
        self,
        companies: CompanyRepository,
        attendance: AttendanceRepository,
        policies: PolicyStore,
        *,
        audit: AuditLog,
        notifier: Notifier,
        clock: Callable[[], datetime] = now_utc,
        chunk_size: int = DEFAULT_JOB_CHUNK_SIZE,
        max_workers: int = DEFAULT_JOB_MAX_WORKERS,
    ):
        self._companies = companies
        self._attendance = attendance
        self._policies = policies
        self._audit = audit
        self._notifier = notifier
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
        today = local_date(now, policy.zone)
        yesterday = today - timedelta(days=1)

        # Yesterday's deadline is the earliest one that can have passed.
        if now < auto_punch_out_deadline(yesterday, policy):
            logger.debug("auto punch-out skipped company=%s: no deadline passed yet", company.company_id)
            return BatchResult()

        result = BatchResult()
        for record in self._attendance.list_open_for_company(company.company_id, [today, yesterday]):
            deadline = auto_punch_out_deadline(record.attendance_date, policy)
            if now < deadline or record.punch_in_at is None:
                continue
            closed = close_forgotten(record, deadline, policy)
            if not self._attendance.compare_and_set(closed, expected_version=record.version, require_open=True):
                logger.info("auto punch-out lost race attendance=%s", record.attendance_id)
                continue

            result.processed += 1
            safe_audit(
                self._audit,
                SYSTEM_ACTOR,
                "AUTO_PUNCH_OUT",
                "ATTENDANCE",
                record.attendance_id,
                {
                    "deadline": deadline.isoformat(),
                    "working_hours": str(closed.working_hours),
                    "hours_capped": closed.hours_capped,
                },
            )
            safe_notify(
                self._notifier,
                record.employee_id,
                "Automatic punch-out",
                f"You were punched out automatically for {record.attendance_date.isoformat()}. "
                "The day needs a manager's approval.",
                NotificationChannel.IN_APP,
            )
        return result
