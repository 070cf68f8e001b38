from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.rules import compute_hours, lateness
from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus, CorrectionType, NotificationChannel, RequestStatus
from ..core.exceptions import InvalidTransition, NotFound, NotPending, ValidationError
from ..integrations.audit import AuditLog, safe_audit
from ..integrations.notifications import Notifier, safe_notify
from ..payroll.service import SalaryService
from ..policy.model import Policy
from ..policy.store import PolicyStore
from ..users.repository import EmployeeRepository
from .model import CorrectionRequest
from .repository import CorrectionRepository

logger = logging.getLogger(__name__)

_DECISIONS = (RequestStatus.APPROVED, RequestStatus.REJECTED)
_MAX_APPLY_ATTEMPTS = 3


class CorrectionService:
    def __init__(
        self,
        corrections: CorrectionRepository,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        policies: PolicyStore,
        *,
        audit: AuditLog,
        notifier: Notifier,
        salaries: Optional[SalaryService] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._corrections = corrections
        self._attendance = attendance
        self._employees = employees
        self._policies = policies
        self._audit = audit
        self._notifier = notifier
        self._salaries = salaries
        self._clock = clock

    def submit(
        self,
        employee_id: int,
        correction_type: CorrectionType,
        attendance_date: date,
        requested_time: datetime,
        reason: str,
        *,
        now: Optional[datetime] = None,
    ) -> CorrectionRequest:
        now = now or self._clock()
        reason = require_non_empty(reason, "reason")
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFound(f"Employee {employee_id} does not exist")

        if self._corrections.find_pending(employee.employee_id, employee.company_id, attendance_date, correction_type):
            raise ValidationError("A pending request already exists for this day")

        record = self._attendance.get_for_employee_and_date(
            employee.employee_id, employee.company_id, attendance_date
        )
        if correction_type == CorrectionType.MISSED_PUNCH_OUT and (record is None or record.punch_in_at is None):
            raise NotFound("There is no punch-in to attach a punch-out to on this day")

        created = self._corrections.create(
            CorrectionRequest(
                request_id=0,
                employee_id=employee.employee_id,
                company_id=employee.company_id,
                attendance_id=record.attendance_id if record else None,
                correction_type=correction_type,
                attendance_date=attendance_date,
                requested_time=requested_time,
                reason=reason,
                created_at=now,
            )
        )
        safe_audit(
            self._audit,
            employee.employee_id,
            "CORRECTION_SUBMITTED",
            "CORRECTION_REQUEST",
            created.request_id,
            {"type": correction_type.value, "attendance_date": attendance_date.isoformat()},
        )
        return created

    def review(
        self,
        request_id: int,
        decision: RequestStatus,
        *,
        reviewer_id: int,
        approved_time: Optional[datetime] = None,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CorrectionRequest:
        now = now or self._clock()
        if decision not in _DECISIONS:
            raise ValidationError("Decision must be APPROVED or REJECTED")

        req = self._corrections.get_by_id(int(request_id))
        if not req:
            raise NotFound(f"Correction request {request_id} does not exist")
        if req.status != RequestStatus.PENDING:
            raise NotPending(f"Correction request is already {req.status.value}")

        reviewed = replace(
            req,
            status=decision,
            reviewed_by=int(reviewer_id),
            reviewed_at=now,
            review_note=note,
            approved_time=approved_time if decision == RequestStatus.APPROVED else None,
        )

        record: Optional[AttendanceRecord] = None
        policy = self._policies.get(req.company_id)
        if decision == RequestStatus.APPROVED:
            # Surface missing records and impossible times before the request is claimed.
            self._build_update(self._target_record(reviewed), reviewed, policy, int(reviewer_id), now)

        claimed = self._corrections.decide(
            req.request_id,
            status=decision,
            reviewed_by=int(reviewer_id),
            reviewed_at=now,
            review_note=note,
            approved_time=reviewed.approved_time,
        )
        if not claimed:
            raise NotPending("Correction request was reviewed concurrently")

        if decision == RequestStatus.APPROVED:
            try:
                record = self._apply(reviewed, policy, int(reviewer_id), now)
            except Exception:
                # The attendance row was not touched; leave the request reviewable.
                if not self._corrections.reopen(req.request_id, from_status=RequestStatus.APPROVED):
                    logger.error("could not reopen correction request=%s after a failed apply", req.request_id)
                raise

        safe_audit(
            self._audit,
            reviewer_id,
            f"CORRECTION_{decision.value}",
            "CORRECTION_REQUEST",
            req.request_id,
            {
                "type": req.correction_type.value,
                "attendance_id": record.attendance_id if record else req.attendance_id,
                "effective_time": reviewed.effective_time.isoformat() if record else None,
                "note": note,
            },
        )
        safe_notify(
            self._notifier,
            req.employee_id,
            f"Correction {decision.value.lower()}",
            f"Your {req.correction_type.value.replace('_', ' ').lower()} request for "
            f"{req.attendance_date.isoformat()} was {decision.value.lower()}" + (f": {note}" if note else ""),
            NotificationChannel.IN_APP,
        )

        if record is not None:
            self._refresh_salary(record, int(reviewer_id))
        return reviewed

    def _target_record(self, req: CorrectionRequest) -> Optional[AttendanceRecord]:
        if req.attendance_id is not None:
            return self._attendance.get_by_id(req.attendance_id)
        return self._attendance.get_for_employee_and_date(req.employee_id, req.company_id, req.attendance_date)

    def _build_update(
        self,
        record: Optional[AttendanceRecord],
        req: CorrectionRequest,
        policy: Policy,
        reviewer_id: int,
        now: datetime,
    ) -> AttendanceRecord:
        at = req.effective_time
        if record is None:
            if req.correction_type == CorrectionType.MISSED_PUNCH_OUT:
                raise NotFound("The attendance record for this punch-out does not exist")
            record = AttendanceRecord(
                attendance_id=0,
                employee_id=req.employee_id,
                company_id=req.company_id,
                attendance_date=req.attendance_date,
            )

        changes: dict = {
            "status": AttendanceStatus.APPROVED,
            "approved_by": reviewer_id,
            "approved_at": now,
            "approval_reason": req.review_note or req.reason,
        }
        if req.correction_type == CorrectionType.MISSED_PUNCH_IN:
            is_late, late_minutes = lateness(at, record.attendance_date, policy)
            changes.update(punch_in_at=at, is_late=is_late, late_minutes=late_minutes)
        else:
            changes.update(punch_out_at=at)

        updated = replace(record, **changes)
        if updated.punch_in_at is not None and updated.punch_out_at is not None:
            hours = compute_hours(updated.punch_in_at, updated.punch_out_at, policy)
            updated = replace(
                updated,
                working_hours=hours.working_hours,
                overtime_hours=hours.overtime_hours,
                hours_capped=hours.capped,
            )
        return updated

    def _apply(self, req: CorrectionRequest, policy: Policy, reviewer_id: int, now: datetime) -> AttendanceRecord:
        for _ in range(_MAX_APPLY_ATTEMPTS):
            current = self._target_record(req)
            updated = self._build_update(current, req, policy, reviewer_id, now)
            if current is None:
                stored = self._attendance.insert_if_absent(updated)
                if stored is not None:
                    return stored
                continue
            if self._attendance.compare_and_set(updated, expected_version=current.version):
                return replace(updated, version=current.version + 1)
        raise InvalidTransition("Attendance kept changing while the correction was applied; retry")

    def _refresh_salary(self, record: AttendanceRecord, actor_id: int) -> None:
        if self._salaries is None:
            return
        try:
            self._salaries.refresh_if_pending(
                record.employee_id,
                record.company_id,
                record.attendance_date.month,
                record.attendance_date.year,
                actor_id=actor_id,
            )
        except Exception:
            logger.exception(
                "salary refresh after correction failed employee=%s month=%s-%02d",
                record.employee_id,
                record.attendance_date.year,
                record.attendance_date.month,
            )
