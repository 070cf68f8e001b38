from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.attendance_payroll.attendance_payroll.common.datetime_utils import iter_days
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus, BreakdownType, SalaryType
from src.attendance_payroll.attendance_payroll.core.exceptions import MissingRate, PolicyNotConfigured
from src.attendance_payroll.attendance_payroll.payroll.calculator.standard_calculator import SalaryCalculator
from src.attendance_payroll.attendance_payroll.payroll.model import MonthlySummary, SalaryBreakdown, totals
from tests.fakes import World, approved_day, make_employee, make_policy, monthly_employee, utc


def _april(**counts) -> MonthlySummary:
    return MonthlySummary(employee_id=1, company_id=1, month=4, year=2025, **counts)


def test_aggregator_counts_every_record_once():
    w = World(now=utc(2025, 5, 1), employees=[monthly_employee(1)])
    days = list(iter_days(date(2025, 4, 1), date(2025, 4, 30)))
    for day in days[:27]:
        w.attendance.add(approved_day(1, day))
    w.attendance.add(approved_day(1, days[27], hours="3"))
    for day in days[28:]:
        w.attendance.add(approved_day(1, day, status=AttendanceStatus.ABSENT, working_hours=Decimal("0")))

    summary = w.aggregator.aggregate(1, 1, 4, 2025)

    assert (summary.full_days, summary.half_days, summary.absent_days) == (27, 1, 2)
    assert summary.classified_days == summary.records_found == 30
    assert summary.missing_dates == ()
    assert summary.working_hours == Decimal("246")


def test_aggregator_reports_missing_days_up_to_today_and_ignores_pending_hours():
    w = World(now=utc(2025, 3, 4, 12, 0), employees=[monthly_employee(1)])
    w.attendance.add(approved_day(1, date(2025, 3, 1), late_minutes=10))
    w.attendance.add(approved_day(1, date(2025, 3, 3), status=AttendanceStatus.PENDING, late_minutes=40))

    summary = w.aggregator.aggregate(1, 1, 3, 2025)

    assert summary.missing_dates == (date(2025, 3, 2), date(2025, 3, 4))
    assert summary.pending_days == 1
    assert summary.late_minutes == 10
    assert summary.working_hours == Decimal("9")


def test_monthly_proration_with_absence_penalty():
    policy = make_policy(enable_absent_penalty=True, absent_penalty_per_day=Decimal("500"))
    summary = _april(full_days=27, half_days=1, absent_days=2)

    comp = SalaryCalculator().calculate(monthly_employee(1), policy, summary, SalaryType.MONTHLY)

    lines = {b.breakdown_type: b for b in comp.breakdowns}
    assert lines[BreakdownType.BASE_SALARY].amount == Decimal("27500.00")
    assert lines[BreakdownType.ABSENCE_DEDUCTION].amount == Decimal("-1000.00")
    assert comp.gross == Decimal("27500.00")
    assert comp.net == Decimal("26500.00")


def test_statutory_deductions_follow_policy_percentages():
    policy = make_policy(enable_absent_penalty=True, absent_penalty_per_day=Decimal("500"))
    summary = _april(full_days=27, half_days=1, absent_days=2)
    employee = monthly_employee(1, pf_esi_applicable=True)

    comp = SalaryCalculator().calculate(employee, policy, summary, SalaryType.MONTHLY)

    lines = {b.breakdown_type: b for b in comp.breakdowns}
    assert lines[BreakdownType.PF_DEDUCTION].amount == Decimal("-3300.00")
    assert lines[BreakdownType.ESI_DEDUCTION].amount == Decimal("-206.25")
    assert comp.totals.deductions == Decimal("3506.25")
    assert comp.net == Decimal("22993.75")


def test_daily_wage_overtime_uses_derived_hourly_rate():
    employee = make_employee(1, salary_type=SalaryType.DAILY, daily_rate=Decimal("800"))
    summary = _april(full_days=10, overtime_hours=Decimal("2"))

    comp = SalaryCalculator().calculate(employee, make_policy(), summary, SalaryType.DAILY)

    assert comp.totals.base_amount == Decimal("8000.00")
    assert comp.totals.overtime_amount == Decimal("266.67")
    assert comp.gross == Decimal("8266.67")


def test_late_penalty_is_opt_in():
    employee = make_employee(1, salary_type=SalaryType.HOURLY, hourly_rate=Decimal("100"))
    summary = _april(full_days=5, working_hours=Decimal("40"), late_minutes=25)

    off = SalaryCalculator().calculate(employee, make_policy(), summary, SalaryType.HOURLY)
    on = SalaryCalculator().calculate(
        employee,
        make_policy(enable_late_penalty=True, late_penalty_per_minute=Decimal("2")),
        summary,
        SalaryType.HOURLY,
    )

    assert off.net == Decimal("4000.00")
    assert on.totals.penalty_amount == Decimal("50.00")
    assert on.net == Decimal("3950.00")


def test_missing_rate_is_a_policy_error():
    employee = make_employee(1, salary_type=SalaryType.HOURLY)

    with pytest.raises(MissingRate) as info:
        SalaryCalculator().calculate(employee, make_policy(), _april(), SalaryType.HOURLY)

    assert isinstance(info.value, PolicyNotConfigured)
    assert info.value.kind == "PolicyNotConfigured"


def test_totals_are_derived_from_lines():
    lines = [
        SalaryBreakdown(BreakdownType.BASE_SALARY, "base", Decimal("1000")),
        SalaryBreakdown(BreakdownType.OVERTIME, "ot", Decimal("200")),
        SalaryBreakdown(BreakdownType.PAYMENT, "bonus", Decimal("50"), manual=True),
        SalaryBreakdown(BreakdownType.LATE_PENALTY, "late", Decimal("-30")),
        SalaryBreakdown(BreakdownType.PF_DEDUCTION, "pf", Decimal("-120")),
        SalaryBreakdown(BreakdownType.DEDUCTION, "canteen", Decimal("-10"), manual=True),
    ]

    t = totals(lines)

    assert t.gross == Decimal("1250.00")
    assert t.penalty_amount == Decimal("30.00")
    assert t.deductions == Decimal("130.00")
    assert t.net == t.gross - t.penalty_amount - t.deductions == Decimal("1090.00")
