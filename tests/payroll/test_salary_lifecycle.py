from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.attendance_payroll.attendance_payroll.common.datetime_utils import iter_days
from src.attendance_payroll.attendance_payroll.core.enums import BreakdownType, SalaryStatus
from src.attendance_payroll.attendance_payroll.core.exceptions import (
    InvalidTransition,
    RecordLocked,
    ValidationError,
)
from tests.fakes import World, approved_day, monthly_employee, utc


def _world_with_salary():
    w = World(now=utc(2025, 5, 2, 10, 0), employees=[monthly_employee(1)])
    for day in iter_days(date(2025, 4, 1), date(2025, 4, 29)):
        w.attendance.add(approved_day(1, day))
    salary = w.salary_service.generate(1, 4, 2025, actor_id=9)
    return w, salary


def test_generated_salary_is_pending_and_unlocked():
    w, salary = _world_with_salary()

    assert salary.status == SalaryStatus.PENDING
    assert not salary.is_locked
    assert salary.net_amount == Decimal("29000.00")
    assert "SALARY_GENERATED" in w.audit.actions


def test_approve_locks_and_blocks_recalculation():
    w, salary = _world_with_salary()

    approved = w.lifecycle.approve(salary.salary_id, actor_id=9)

    assert approved.status == SalaryStatus.APPROVED
    assert approved.locked_at == utc(2025, 5, 2, 10, 0)
    with pytest.raises(RecordLocked):
        w.lifecycle.recalculate(salary.salary_id)
    with pytest.raises(InvalidTransition):
        w.lifecycle.approve(salary.salary_id, actor_id=9)


def test_paid_salary_is_never_recalculated():
    w, salary = _world_with_salary()
    w.lifecycle.approve(salary.salary_id, actor_id=9)

    paid = w.lifecycle.mark_paid(salary.salary_id, actor_id=9)
    w.attendance.add(approved_day(1, date(2025, 4, 30)))

    assert paid.status == SalaryStatus.PAID
    assert paid.paid_at == utc(2025, 5, 2, 10, 0)
    with pytest.raises(RecordLocked):
        w.lifecycle.recalculate(salary.salary_id)
    with pytest.raises(RecordLocked):
        w.salary_service.generate(1, 4, 2025)
    assert w.salaries.get(salary.salary_id).net_amount == Decimal("29000.00")


def test_mark_paid_requires_approval_first():
    w, salary = _world_with_salary()

    with pytest.raises(InvalidTransition):
        w.lifecycle.mark_paid(salary.salary_id)


def test_rejected_salary_can_be_recalculated_back_to_pending():
    w, salary = _world_with_salary()
    rejected = w.lifecycle.reject(salary.salary_id, actor_id=9, reason="missing day 30")
    assert rejected.is_locked
    w.attendance.add(approved_day(1, date(2025, 4, 30)))

    fresh = w.lifecycle.recalculate(salary.salary_id, actor_id=9)

    assert fresh.status == SalaryStatus.PENDING
    assert fresh.locked_at is None and fresh.rejection_reason is None
    assert fresh.net_amount == Decimal("30000.00")
    assert w.salaries.get(salary.salary_id).version == fresh.version


def test_reject_needs_a_reason():
    w, salary = _world_with_salary()

    with pytest.raises(ValidationError):
        w.lifecycle.reject(salary.salary_id, actor_id=9, reason="  ")


def test_manual_adjustments_survive_recalculation():
    w, salary = _world_with_salary()

    adjusted = w.lifecycle.add_adjustment(
        salary.salary_id, BreakdownType.PAYMENT, "500", actor_id=9, description="Festival bonus"
    )
    adjusted = w.lifecycle.add_adjustment(
        salary.salary_id, BreakdownType.RECOVERY, "200", actor_id=9, description="Advance recovery"
    )
    assert adjusted.net_amount == Decimal("29300.00")

    w.attendance.add(approved_day(1, date(2025, 4, 30)))
    fresh = w.lifecycle.recalculate(salary.salary_id)

    manual = [(b.breakdown_type, b.amount) for b in fresh.manual_lines]
    assert manual == [(BreakdownType.PAYMENT, Decimal("500.00")), (BreakdownType.RECOVERY, Decimal("-200.00"))]
    assert fresh.gross_amount == Decimal("30500.00")
    assert fresh.net_amount == Decimal("30300.00")


def test_computed_line_types_cannot_be_entered_by_hand():
    w, salary = _world_with_salary()

    with pytest.raises(ValidationError):
        w.lifecycle.add_adjustment(salary.salary_id, BreakdownType.BASE_SALARY, "1", actor_id=9, description="x")


def test_adjustment_on_approved_salary_is_refused():
    w, salary = _world_with_salary()
    w.lifecycle.approve(salary.salary_id, actor_id=9)

    with pytest.raises(RecordLocked):
        w.lifecycle.add_adjustment(salary.salary_id, BreakdownType.DEDUCTION, "10", actor_id=9, description="fine")
