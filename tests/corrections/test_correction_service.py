from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceRecord
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus, CorrectionType, RequestStatus
from src.attendance_payroll.attendance_payroll.core.exceptions import InvalidTransition, NotFound, NotPending, ValidationError
from tests.fakes import World, approved_day, monthly_employee, utc

DAY = date(2025, 3, 10)


def _world() -> World:
    return World(now=utc(2025, 3, 11, 8, 0), employees=[monthly_employee(1)])


def _open_day(w: World) -> AttendanceRecord:
    return w.attendance.add(
        AttendanceRecord(attendance_id=0, employee_id=1, company_id=1, attendance_date=DAY, punch_in_at=utc(2025, 3, 10, 9, 0))
    )


def test_missed_punch_out_needs_a_punch_in():
    w = _world()

    with pytest.raises(NotFound):
        w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")


def test_duplicate_pending_request_is_refused():
    w = _world()
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_IN, DAY, utc(2025, 3, 10, 9, 0), "phone died")

    assert req.attendance_id is None
    assert req.status == RequestStatus.PENDING
    with pytest.raises(ValidationError):
        w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_IN, DAY, utc(2025, 3, 10, 9, 5), "again")


def test_approved_punch_out_closes_and_approves_the_day():
    w = _world()
    rec = _open_day(w)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")

    reviewed = w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    day = w.attendance.get_by_id(rec.attendance_id)
    assert reviewed.status == RequestStatus.APPROVED
    assert w.corrections.get_by_id(req.request_id).reviewed_by == 7
    assert day.status == AttendanceStatus.APPROVED
    assert day.punch_out_at == utc(2025, 3, 10, 18, 0)
    assert day.working_hours == Decimal("9")
    assert "CORRECTION_APPROVED" in w.audit.actions
    assert w.notifier.sent[-1][0] == 1


def test_reviewer_time_overrides_requested_time():
    w = _world()
    rec = _open_day(w)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 20, 0), "late night")

    w.correction_service.review(
        req.request_id, RequestStatus.APPROVED, reviewer_id=7, approved_time=utc(2025, 3, 10, 17, 0)
    )

    assert w.attendance.get_by_id(rec.attendance_id).working_hours == Decimal("8")


def test_approved_punch_in_creates_missing_day():
    w = _world()
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_IN, DAY, utc(2025, 3, 10, 9, 45), "phone died")

    w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    day = w.attendance.get_for_employee_and_date(1, 1, DAY)
    assert day.status == AttendanceStatus.APPROVED
    assert day.punch_in_at == utc(2025, 3, 10, 9, 45)
    assert day.late_minutes == 15


def test_rejected_request_leaves_attendance_alone():
    w = _world()
    rec = _open_day(w)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")

    reviewed = w.correction_service.review(req.request_id, RequestStatus.REJECTED, reviewer_id=7, note="no proof")

    assert reviewed.status == RequestStatus.REJECTED
    assert w.attendance.get_by_id(rec.attendance_id) == rec


def test_request_can_only_be_reviewed_once():
    w = _world()
    _open_day(w)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")
    w.correction_service.review(req.request_id, RequestStatus.REJECTED, reviewer_id=7)

    with pytest.raises(NotPending):
        w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)


def test_decision_must_be_final():
    w = _world()

    with pytest.raises(ValidationError):
        w.correction_service.review(1, RequestStatus.PENDING, reviewer_id=7)


def test_approval_refreshes_pending_salary():
    w = _world()
    w.attendance.add(approved_day(1, date(2025, 3, 3)))
    _open_day(w)
    salary = w.salary_service.generate(1, 3, 2025)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")

    w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    refreshed = w.salaries.get(salary.salary_id)
    assert refreshed.version == salary.version + 1
    assert refreshed.total_working_days == 2
    assert "SALARY_RECALCULATED" in w.audit.actions


def test_failed_apply_leaves_request_reviewable(monkeypatch):
    w = _world()
    rec = _open_day(w)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")
    monkeypatch.setattr(w.attendance, "compare_and_set", lambda *args, **kwargs: False)

    with pytest.raises(InvalidTransition):
        w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    stored = w.corrections.get_by_id(req.request_id)
    assert stored.status == RequestStatus.PENDING
    assert stored.reviewed_by is None
    assert w.attendance.get_by_id(rec.attendance_id).punch_out_at is None
    assert "CORRECTION_APPROVED" not in w.audit.actions

    monkeypatch.undo()
    reviewed = w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    assert reviewed.status == RequestStatus.APPROVED
    assert w.attendance.get_by_id(rec.attendance_id).punch_out_at == utc(2025, 3, 10, 18, 0)


def test_review_survives_broken_audit_and_notifier():
    w = _world()
    rec = _open_day(w)
    req = w.correction_service.submit(1, CorrectionType.MISSED_PUNCH_OUT, DAY, utc(2025, 3, 10, 18, 0), "forgot")
    w.audit.broken = True
    w.notifier.broken = True

    reviewed = w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    assert reviewed.status == RequestStatus.APPROVED
    assert w.corrections.get_by_id(req.request_id).status == RequestStatus.APPROVED
    assert w.attendance.get_by_id(rec.attendance_id).status == AttendanceStatus.APPROVED
