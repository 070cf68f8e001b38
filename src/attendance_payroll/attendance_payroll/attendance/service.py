from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from ..common.datetime_utils import local_date, now_utc
from ..core.enums import AttendanceStatus, NotificationChannel
from ..core.exceptions import (
    AlreadyPunchedIn,
    InvalidTransition,
    NoOpenPunch,
    NotFound,
    OutsideGeofence,
    OutsideNightWindow,
)
from ..integrations.audit import AuditLog, safe_audit
from ..integrations.notifications import Notifier, safe_notify
from ..policy.model import Policy
from ..policy.store import PolicyStore
from ..users.model import Employee
from ..users.repository import EmployeeRepository
from .factory import ApprovalDecision, ApprovalRuleFactory
from .geofence import GeoValidator
from .model import AttendanceRecord, GeoPoint, WorkedHours
from .repository import AttendanceRepository
from .rules import compute_hours, lateness, resolve_attendance_date
from .strategies.base import ClosedDay

logger = logging.getLogger(__name__)

_FINAL_STATUSES = frozenset(
    {AttendanceStatus.APPROVED, AttendanceStatus.REJECTED, AttendanceStatus.ABSENT, AttendanceStatus.LEAVE}
)


class AttendanceService:
    """Lifecycle of one (employee, company, date) attendance record."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        policies: PolicyStore,
        *,
        audit: AuditLog,
        notifier: Notifier,
        geo: Optional[GeoValidator] = None,
        approval_rules: Optional[ApprovalRuleFactory] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._employees = employees
        self._policies = policies
        self._audit = audit
        self._notifier = notifier
        self._geo = geo or GeoValidator()
        self._rules = approval_rules or ApprovalRuleFactory()
        self._clock = clock

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFound(f"Employee {employee_id} does not exist")
        return employee

    def evaluate_approval(self, record: AttendanceRecord, hours: WorkedHours, policy: Policy) -> ApprovalDecision:
        return self._rules.evaluate(
            ClosedDay(
                is_late=record.is_late,
                late_minutes=record.late_minutes,
                working_hours=hours.working_hours,
                overtime_hours=hours.overtime_hours,
                policy=policy,
            )
        )

    def punch_in(
        self,
        employee_id: int,
        *,
        now: Optional[datetime] = None,
        location: Optional[GeoPoint] = None,
        photo_ref: Optional[str] = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        employee = self._require_employee(employee_id)
        policy = self._policies.get(employee.company_id)

        geo = self._geo.check_policy(location, policy)
        if not geo.accepted:
            raise OutsideGeofence(geo.distance_m if geo.distance_m is not None else float("inf"), policy.location_radius_m)

        resolved = resolve_attendance_date(now, policy)
        is_late, late_minutes = lateness(now, resolved.attendance_date, policy)

        existing = self._attendance.get_for_employee_and_date(
            employee.employee_id, employee.company_id, resolved.attendance_date
        )
        if existing:
            record = self._fill_punch_in(existing, resolved.carried_over, now, is_late, late_minutes, location, photo_ref)
        else:
            stored = self._attendance.insert_if_absent(
                AttendanceRecord(
                    attendance_id=0,
                    employee_id=employee.employee_id,
                    company_id=employee.company_id,
                    attendance_date=resolved.attendance_date,
                    status=AttendanceStatus.PENDING,
                    punch_in_at=now,
                    is_late=is_late,
                    late_minutes=late_minutes,
                    punch_in_location=location,
                    punch_in_photo=photo_ref,
                )
            )
            if stored is None:
                raise AlreadyPunchedIn("Attendance for this day was recorded concurrently")
            record = stored

        safe_audit(
            self._audit,
            employee.employee_id,
            "PUNCH_IN",
            "ATTENDANCE",
            record.attendance_id,
            {
                "attendance_date": record.attendance_date.isoformat(),
                "night_carry_over": resolved.carried_over,
                "is_late": is_late,
                "late_minutes": late_minutes,
                "distance_m": geo.distance_m,
                "geofence_skipped": geo.skipped,
            },
        )
        logger.info(
            "punch-in employee=%s date=%s late=%s carried_over=%s",
            employee.employee_id,
            record.attendance_date,
            is_late,
            resolved.carried_over,
        )
        return record

    def _fill_punch_in(
        self,
        existing: AttendanceRecord,
        carried_over: bool,
        now: datetime,
        is_late: bool,
        late_minutes: int,
        location: Optional[GeoPoint],
        photo_ref: Optional[str],
    ) -> AttendanceRecord:
        if existing.punch_in_at is not None:
            if carried_over and existing.punch_out_at is not None:
                raise OutsideNightWindow("The night shift this punch would continue has already ended")
            raise AlreadyPunchedIn("Already punched in for this day")
        if existing.is_final:
            if carried_over:
                raise OutsideNightWindow("The night shift this punch would continue has already been closed")
            raise InvalidTransition(f"Attendance for this day is already {existing.status.value}")

        updated = replace(
            existing,
            punch_in_at=now,
            is_late=is_late,
            late_minutes=late_minutes,
            punch_in_location=location,
            punch_in_photo=photo_ref,
        )
        if not self._attendance.compare_and_set(updated, expected_version=existing.version):
            raise AlreadyPunchedIn("Attendance for this day was updated concurrently")
        return replace(updated, version=existing.version + 1)

    def _latest_open(self, employee: Employee, today: date) -> Optional[AttendanceRecord]:
        candidates = self._attendance.find_open(
            employee.employee_id, employee.company_id, [today, today - timedelta(days=1)]
        )
        if not candidates:
            return None
        return max(candidates, key=lambda r: (r.attendance_date, r.punch_in_at))

    def punch_out(
        self,
        employee_id: int,
        *,
        now: Optional[datetime] = None,
        location: Optional[GeoPoint] = None,
        photo_ref: Optional[str] = None,
    ) -> AttendanceRecord:
        now = now or self._clock()
        employee = self._require_employee(employee_id)
        policy = self._policies.get(employee.company_id)

        record = self._latest_open(employee, local_date(now, policy.zone))
        if record is None:
            raise NoOpenPunch("No open punch-in for today or yesterday")

        hours = compute_hours(record.punch_in_at, now, policy)
        decision = self.evaluate_approval(record, hours, policy)

        updated = replace(
            record,
            punch_out_at=now,
            working_hours=hours.working_hours,
            overtime_hours=hours.overtime_hours,
            hours_capped=hours.capped,
            requires_approval=decision.requires_approval,
            approval_triggers=decision.triggers,
            approval_reason=decision.reason,
            punch_out_location=location,
            punch_out_photo=photo_ref,
        )
        if not self._attendance.compare_and_set(updated, expected_version=record.version, require_open=True):
            raise NoOpenPunch("The open punch was closed concurrently")

        safe_audit(
            self._audit,
            employee.employee_id,
            "PUNCH_OUT",
            "ATTENDANCE",
            record.attendance_id,
            {
                "working_hours": str(hours.working_hours),
                "raw_hours": str(hours.raw_hours),
                "hours_capped": hours.capped,
                "overtime_hours": str(hours.overtime_hours),
                "approval_triggers": [t.value for t in decision.triggers],
            },
        )
        if hours.capped:
            logger.warning(
                "working hours capped attendance=%s raw=%s cap=%s",
                record.attendance_id,
                hours.raw_hours,
                policy.max_daily_hours,
            )
        return replace(updated, version=record.version + 1)

    def set_status(
        self,
        attendance_id: int,
        status: AttendanceStatus,
        *,
        actor_id: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Manager/admin decision on a PENDING day; every other transition is refused."""
        now = now or self._clock()
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFound(f"Attendance {attendance_id} does not exist")
        if record.status != AttendanceStatus.PENDING or status not in _FINAL_STATUSES:
            raise InvalidTransition(f"Cannot move attendance from {record.status.value} to {status.value}")

        changes: dict = {"status": status}
        if status == AttendanceStatus.APPROVED:
            changes.update(approved_by=int(actor_id), approved_at=now)
        elif status == AttendanceStatus.REJECTED:
            changes.update(rejected_by=int(actor_id), rejected_at=now, rejection_reason=reason)
        else:
            changes.update(working_hours=Decimal("0"), overtime_hours=Decimal("0"), approval_reason=reason)

        updated = replace(record, **changes)
        if not self._attendance.compare_and_set(updated, expected_version=record.version):
            raise InvalidTransition("Attendance was changed concurrently; reload and retry")

        safe_audit(
            self._audit,
            actor_id,
            f"ATTENDANCE_{status.value}",
            "ATTENDANCE",
            record.attendance_id,
            {"reason": reason, "previous_status": record.status.value},
        )
        safe_notify(
            self._notifier,
            record.employee_id,
            "Attendance updated",
            f"Your attendance for {record.attendance_date.isoformat()} was marked {status.value.lower()}"
            + (f": {reason}" if reason else ""),
            NotificationChannel.IN_APP,
        )
        return replace(updated, version=record.version + 1)

    def manual_entry(
        self,
        employee_id: int,
        attendance_date: date,
        *,
        punch_in_at: datetime,
        punch_out_at: Optional[datetime],
        actor_id: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        """Admin-created day, approved on creation."""
        now = now or self._clock()
        employee = self._require_employee(employee_id)
        policy = self._policies.get(employee.company_id)

        is_late, late_minutes = lateness(punch_in_at, attendance_date, policy)
        working = overtime = Decimal("0")
        capped = False
        if punch_out_at is not None:
            hours = compute_hours(punch_in_at, punch_out_at, policy)
            working, overtime, capped = hours.working_hours, hours.overtime_hours, hours.capped

        stored = self._attendance.insert_if_absent(
            AttendanceRecord(
                attendance_id=0,
                employee_id=employee.employee_id,
                company_id=employee.company_id,
                attendance_date=attendance_date,
                status=AttendanceStatus.APPROVED,
                punch_in_at=punch_in_at,
                punch_out_at=punch_out_at,
                working_hours=working,
                overtime_hours=overtime,
                hours_capped=capped,
                is_late=is_late,
                late_minutes=late_minutes,
                approval_reason=reason,
                approved_by=int(actor_id),
                approved_at=now,
            )
        )
        if stored is None:
            raise InvalidTransition(f"Attendance already exists for {attendance_date.isoformat()}")

        safe_audit(
            self._audit,
            actor_id,
            "MANUAL_ENTRY",
            "ATTENDANCE",
            stored.attendance_id,
            {"employee_id": employee.employee_id, "attendance_date": attendance_date.isoformat(), "reason": reason},
        )
        return stored

    def today(self, employee_id: int, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        now = now or self._clock()
        employee = self._require_employee(employee_id)
        policy = self._policies.get(employee.company_id)
        resolved = resolve_attendance_date(now, policy)
        return self._attendance.get_for_employee_and_date(
            employee.employee_id, employee.company_id, resolved.attendance_date
        )
