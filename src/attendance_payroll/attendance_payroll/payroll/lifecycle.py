"""Salary state machine: PENDING -> APPROVED | REJECTED, APPROVED -> PAID.

Leaving PENDING stamps ``locked_at``. A REJECTED salary can still be
recalculated, which brings it back to an unlocked PENDING state; APPROVED and
PAID salaries cannot.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty, require_positive_amount
from ..core.enums import BreakdownType, NotificationChannel, SalaryStatus
from ..core.exceptions import InvalidTransition, NotFound, RecordLocked, ValidationError
from ..integrations.audit import AuditLog, safe_audit
from ..integrations.notifications import Notifier, safe_notify
from .model import SalaryBreakdown, SalaryRecord, money, totals
from .repository import SalaryRepository
from .service import RECALCULABLE, SalaryService

logger = logging.getLogger(__name__)


class SalaryLifecycle:
    def __init__(
        self,
        salaries: SalaryRepository,
        service: SalaryService,
        *,
        audit: AuditLog,
        notifier: Notifier,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._salaries = salaries
        self._service = service
        self._audit = audit
        self._notifier = notifier
        self._clock = clock

    def _require(self, salary_id: int) -> SalaryRecord:
        record = self._salaries.get(int(salary_id))
        if not record:
            raise NotFound(f"Salary {salary_id} does not exist")
        return record

    def _transition(
        self,
        record: SalaryRecord,
        expected: SalaryStatus,
        updated: SalaryRecord,
        *,
        actor_id: Optional[int],
        metadata: Optional[dict] = None,
    ) -> SalaryRecord:
        if record.status != expected:
            raise InvalidTransition(
                f"Salary {record.salary_id} is {record.status.value}; expected {expected.value}"
            )
        if not self._salaries.transition(updated, expected_status=expected, expected_version=record.version):
            raise InvalidTransition(f"Salary {record.salary_id} was changed concurrently; reload and retry")

        safe_audit(
            self._audit,
            actor_id,
            f"SALARY_{updated.status.value}",
            "SALARY",
            record.salary_id,
            {"previous_status": record.status.value, **(metadata or {})},
        )
        safe_notify(
            self._notifier,
            record.employee_id,
            f"Salary {updated.status.value.lower()}",
            f"Your salary for {record.year}-{record.month:02d} is now {updated.status.value.lower()}"
            + (f": {updated.rejection_reason}" if updated.rejection_reason else ""),
            NotificationChannel.IN_APP,
        )
        return replace(updated, version=record.version + 1)

    def approve(self, salary_id: int, *, actor_id: int, now: Optional[datetime] = None) -> SalaryRecord:
        now = now or self._clock()
        record = self._require(salary_id)
        updated = replace(
            record, status=SalaryStatus.APPROVED, approved_by=int(actor_id), approved_at=now, locked_at=now
        )
        return self._transition(record, SalaryStatus.PENDING, updated, actor_id=actor_id)

    def reject(
        self, salary_id: int, *, actor_id: int, reason: str, now: Optional[datetime] = None
    ) -> SalaryRecord:
        now = now or self._clock()
        reason = require_non_empty(reason, "reason")
        record = self._require(salary_id)
        updated = replace(
            record,
            status=SalaryStatus.REJECTED,
            rejected_by=int(actor_id),
            rejected_at=now,
            rejection_reason=reason,
            locked_at=now,
        )
        return self._transition(record, SalaryStatus.PENDING, updated, actor_id=actor_id, metadata={"reason": reason})

    def mark_paid(
        self,
        salary_id: int,
        *,
        actor_id: Optional[int] = None,
        paid_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> SalaryRecord:
        now = now or self._clock()
        paid_at = paid_at or now
        record = self._require(salary_id)
        updated = replace(record, status=SalaryStatus.PAID, paid_at=paid_at, locked_at=record.locked_at or now)
        return self._transition(
            record, SalaryStatus.APPROVED, updated, actor_id=actor_id, metadata={"paid_at": paid_at.isoformat()}
        )

    def recalculate(self, salary_id: int, *, actor_id: Optional[int] = None) -> SalaryRecord:
        record = self._require(salary_id)
        if record.status not in RECALCULABLE:
            raise RecordLocked(f"Salary {record.salary_id} is {record.status.value} and locked")
        return self._service.refresh(record, actor_id=actor_id)

    def add_adjustment(
        self,
        salary_id: int,
        breakdown_type: BreakdownType,
        amount,
        *,
        actor_id: int,
        description: str,
        line_date: Optional[date] = None,
    ) -> SalaryRecord:
        """Manual PAYMENT/ADVANCE (earning) or DEDUCTION/RECOVERY line on an open salary."""
        if not breakdown_type.is_manual:
            raise ValidationError(f"{breakdown_type.value} lines are computed, not entered")
        value = money(require_positive_amount(amount, "amount"))
        description = require_non_empty(description, "description")

        record = self._require(salary_id)
        if record.status != SalaryStatus.PENDING or record.is_locked:
            raise RecordLocked(f"Salary {record.salary_id} is {record.status.value} and locked")

        line = SalaryBreakdown(
            breakdown_type=breakdown_type,
            description=description,
            amount=value if breakdown_type.is_earning else -value,
            line_date=line_date,
            manual=True,
        )
        lines = (*record.breakdowns, line)
        t = totals(lines)
        updated = replace(
            record,
            base_amount=t.base_amount,
            overtime_amount=t.overtime_amount,
            penalty_amount=t.penalty_amount,
            deductions=t.deductions,
            gross_amount=t.gross,
            net_amount=t.net,
            breakdowns=lines,
        )
        if not self._salaries.append_line(updated, line, expected_version=record.version):
            raise RecordLocked(f"Salary {record.salary_id} changed while the adjustment was added")

        safe_audit(
            self._audit,
            actor_id,
            f"SALARY_{breakdown_type.value}",
            "SALARY",
            record.salary_id,
            {"amount": str(line.amount), "description": description},
        )
        logger.info(
            "salary adjustment salary=%s type=%s amount=%s net=%s",
            record.salary_id,
            breakdown_type.value,
            line.amount,
            updated.net_amount,
        )
        return replace(updated, version=record.version + 1)