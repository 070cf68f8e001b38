from __future__ import annotations

from datetime import date

from src.attendance_payroll.attendance_payroll.core.enums import Role, SalaryStatus, SalaryType
from src.attendance_payroll.attendance_payroll.jobs.salary_generation import SalaryGenerationJob, previous_period
from src.attendance_payroll.attendance_payroll.common.datetime_utils import iter_days
from tests.fakes import World, approved_day, make_employee, monthly_employee, utc


def test_previous_period_wraps_the_year():
    assert previous_period(utc(2025, 1, 15)) == (12, 2024)
    assert previous_period(utc(2025, 5, 1)) == (4, 2025)


def _job(w: World) -> SalaryGenerationJob:
    return SalaryGenerationJob(w.companies, w.employees, w.salary_service, notifier=w.notifier, clock=w.clock)


def test_generation_defaults_to_previous_month_and_reports_missing_rates():
    w = World(
        now=utc(2025, 5, 1, 3, 0),
        employees=[
            monthly_employee(1),
            make_employee(2, salary_type=SalaryType.HOURLY),
            make_employee(9, role=Role.ADMIN),
        ],
    )
    for day in iter_days(date(2025, 4, 1), date(2025, 4, 30)):
        w.attendance.add(approved_day(1, day))

    result = _job(w).run()

    salary = w.salaries.get_for_period(1, 1, 4, 2025)
    assert result.processed == 1
    assert result.errors == ["employee 2: PolicyNotConfigured: hourly_rate is not set for hourly salary"]
    assert salary.status == SalaryStatus.PENDING
    assert salary.net_amount == 30000
    assert w.salaries.get_for_period(9, 1, 4, 2025) is None
    assert [n[0] for n in w.notifier.sent] == [9]


def test_rerun_refreshes_pending_salary_in_place():
    w = World(now=utc(2025, 5, 1, 3, 0), employees=[monthly_employee(1)])
    w.attendance.add(approved_day(1, date(2025, 4, 1)))
    job = _job(w)

    job.run(4, 2025)
    w.attendance.add(approved_day(1, date(2025, 4, 2)))
    job.run(4, 2025)

    assert len(w.salaries.by_id) == 1
    salary = w.salaries.get_for_period(1, 1, 4, 2025)
    assert salary.version == 1
    assert salary.total_working_days == 2
    assert salary.net_amount == 2000


def test_generation_skips_locked_salaries():
    w = World(now=utc(2025, 5, 1, 3, 0), employees=[monthly_employee(1)])
    job = _job(w)
    job.run(4, 2025)
    salary = w.salaries.get_for_period(1, 1, 4, 2025)
    w.lifecycle.approve(salary.salary_id, actor_id=9)

    result = job.run(4, 2025)

    assert result.processed == 0
    assert result.errors[0].startswith("employee 1: RecordLocked")
