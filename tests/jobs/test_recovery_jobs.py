from __future__ import annotations

import threading
from datetime import date, time
from decimal import Decimal

from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceRecord
from src.attendance_payroll.attendance_payroll.core.constants import AUTO_PUNCH_OUT_REASON
from src.attendance_payroll.attendance_payroll.core.enums import (
    ApprovalTrigger,
    AttendanceStatus,
    CorrectionType,
    EmployeeStatus,
    RequestStatus,
    Role,
)
from src.attendance_payroll.attendance_payroll.jobs.auto_punch_out import AutoPunchOutJob
from src.attendance_payroll.attendance_payroll.jobs.base import BatchResult, run_per_tenant
from src.attendance_payroll.attendance_payroll.jobs.mark_absent import MarkAbsentJob
from src.attendance_payroll.attendance_payroll.users.company_model import Company
from tests.fakes import World, make_employee, make_policy, utc


def _open(w: World, day: date, punch_in, employee_id: int = 1, company_id: int = 1) -> AttendanceRecord:
    return w.attendance.add(
        AttendanceRecord(
            attendance_id=0,
            employee_id=employee_id,
            company_id=company_id,
            attendance_date=day,
            punch_in_at=punch_in,
        )
    )


def _auto_job(w: World) -> AutoPunchOutJob:
    return AutoPunchOutJob(
        w.companies, w.attendance, w.policies, audit=w.audit, notifier=w.notifier, clock=w.clock
    )


def _absent_job(w: World) -> MarkAbsentJob:
    return MarkAbsentJob(w.companies, w.employees, w.attendance, w.policies, audit=w.audit, clock=w.clock)


def test_auto_punch_out_closes_at_deadline_and_is_idempotent():
    w = World(now=utc(2025, 3, 10, 18, 45), employees=[make_employee(1)])
    rec = _open(w, date(2025, 3, 10), utc(2025, 3, 10, 9, 0))

    first = _auto_job(w).run()
    second = _auto_job(w).run()

    closed = w.attendance.get_by_id(rec.attendance_id)
    assert first.processed == 1
    assert second.processed == 0
    assert closed.punch_out_at == utc(2025, 3, 10, 18, 30)
    assert closed.working_hours == Decimal("9.5")
    assert closed.status == AttendanceStatus.PENDING
    assert closed.auto_punched_out and closed.requires_approval
    assert closed.approval_triggers == (ApprovalTrigger.AUTO_PUNCH_OUT,)
    assert closed.approval_reason == AUTO_PUNCH_OUT_REASON
    assert w.audit.actions == ["AUTO_PUNCH_OUT"]
    assert w.notifier.sent[0][0] == 1


def test_auto_punch_out_waits_for_the_deadline():
    w = World(now=utc(2025, 3, 10, 18, 10), employees=[make_employee(1)])
    rec = _open(w, date(2025, 3, 10), utc(2025, 3, 10, 9, 0))

    result = _auto_job(w).run()

    assert result.processed == 0
    assert w.attendance.get_by_id(rec.attendance_id).is_open


def test_auto_punch_out_caps_hours_and_never_goes_negative():
    w = World(now=utc(2025, 3, 10, 19, 0), policies=[make_policy(max_daily_hours=Decimal("16"))])
    long_day = _open(w, date(2025, 3, 10), utc(2025, 3, 10, 1, 0), employee_id=1)
    after_shift = _open(w, date(2025, 3, 9), utc(2025, 3, 9, 19, 0), employee_id=2)

    result = _auto_job(w).run()

    assert result.processed == 2
    assert w.attendance.get_by_id(long_day.attendance_id).working_hours == Decimal("16")
    assert w.attendance.get_by_id(long_day.attendance_id).hours_capped
    assert w.attendance.get_by_id(after_shift.attendance_id).working_hours == Decimal("0")


def test_one_tenant_failure_does_not_stop_the_rest():
    w = World(
        now=utc(2025, 3, 10, 18, 45),
        companies=[Company(company_id=1, name="Acme"), Company(company_id=2, name="No policy")],
    )
    _open(w, date(2025, 3, 10), utc(2025, 3, 10, 9, 0))

    result = _auto_job(w).run()

    assert result.processed == 1
    assert result.tenants == 2
    assert len(result.errors) == 1 and result.errors[0].startswith("company 2:")
    assert result.to_dict() == {"processed": 1, "errors": result.errors}


def test_run_per_tenant_collects_errors():
    companies = [Company(company_id=i, name=str(i)) for i in (1, 2, 3)]

    def work(company):
        if company.company_id == 2:
            raise RuntimeError("boom")
        return BatchResult(processed=company.company_id)

    result = run_per_tenant("test", companies, work, chunk_size=2, max_workers=2)

    assert result.processed == 4
    assert result.errors == ["company 2: boom"]
    assert result.tenants == 3


def test_mark_absent_fills_gaps_for_tracked_employees_once():
    w = World(
        now=utc(2025, 3, 11, 3, 0),
        employees=[
            make_employee(1),
            make_employee(2),
            make_employee(3, role=Role.MANAGER),
            make_employee(4, status=EmployeeStatus.INACTIVE),
        ],
    )
    _open(w, date(2025, 3, 10), utc(2025, 3, 10, 9, 0), employee_id=1)

    first = _absent_job(w).run()
    second = _absent_job(w).run()

    absent = w.attendance.get_for_employee_and_date(2, 1, date(2025, 3, 10))
    assert first.processed == 1
    assert second.processed == 0
    assert absent.status == AttendanceStatus.ABSENT
    assert w.attendance.get_for_employee_and_date(3, 1, date(2025, 3, 10)) is None
    assert w.attendance.get_for_employee_and_date(4, 1, date(2025, 3, 10)) is None
    assert w.audit.actions == ["MARK_ABSENT"]


def test_mark_absent_waits_until_yesterdays_shift_ends():
    night = make_policy(shift_start=time(22, 0), shift_end=time(6, 0))
    w = World(now=utc(2025, 3, 11, 5, 0), policies=[night], employees=[make_employee(2)])

    result = _absent_job(w).run()

    assert result.processed == 0
    assert w.attendance.by_id == {}


def test_auto_punch_out_leaves_decided_days_alone():
    w = World(now=utc(2025, 3, 10, 19, 0), employees=[make_employee(1)])
    rec = _open(w, date(2025, 3, 10), utc(2025, 3, 10, 9, 0))
    w.attendance_service.set_status(rec.attendance_id, AttendanceStatus.ABSENT, actor_id=7)

    result = _auto_job(w).run()

    stored = w.attendance.get_by_id(rec.attendance_id)
    assert result.processed == 0
    assert stored.status == AttendanceStatus.ABSENT
    assert stored.working_hours == Decimal("0")
    assert not stored.auto_punched_out


def test_auto_punch_out_keeps_a_corrected_punch_in_approved():
    w = World(now=utc(2025, 3, 10, 19, 0), employees=[make_employee(1)])
    req = w.correction_service.submit(
        1, CorrectionType.MISSED_PUNCH_IN, date(2025, 3, 10), utc(2025, 3, 10, 9, 0), "phone died"
    )
    w.correction_service.review(req.request_id, RequestStatus.APPROVED, reviewer_id=7)

    result = _auto_job(w).run()

    day = w.attendance.get_for_employee_and_date(1, 1, date(2025, 3, 10))
    assert result.processed == 0
    assert day.status == AttendanceStatus.APPROVED
    assert day.punch_out_at is None


def test_slow_tenant_does_not_hold_back_later_tenants():
    companies = [Company(company_id=i, name=str(i)) for i in range(1, 9)]
    others_done = threading.Event()
    finished = []
    lock = threading.Lock()

    def work(company):
        if company.company_id == 1:
            # Blocks until every other tenant has run, even those beyond the first chunk.
            return BatchResult(processed=int(others_done.wait(timeout=5)))
        with lock:
            finished.append(company.company_id)
            if len(finished) == len(companies) - 1:
                others_done.set()
        return BatchResult(processed=1)

    result = run_per_tenant("test", companies, work, chunk_size=5, max_workers=4)

    assert sorted(finished) == [2, 3, 4, 5, 6, 7, 8]
    assert result.processed == 8
    assert result.tenants == 8
