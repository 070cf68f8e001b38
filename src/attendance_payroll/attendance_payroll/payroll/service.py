from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import require_period
from ..core.enums import SalaryStatus, SalaryType
from ..core.exceptions import NotFound, RecordLocked
from ..integrations.audit import AuditLog, safe_audit
from ..policy.store import PolicyStore
from ..users.company_repository import CompanyRepository
from ..users.model import Employee
from ..users.repository import EmployeeRepository
from .aggregator import PayrollAggregator
from .calculator.standard_calculator import SalaryCalculator
from .model import MonthlySummary, RateFields, SalaryBreakdown, SalaryComputation, SalaryRecord
from .repository import SalaryRepository

logger = logging.getLogger(__name__)

RECALCULABLE = (SalaryStatus.PENDING, SalaryStatus.REJECTED)


class SalaryService:
    """Creates and refreshes monthly salaries from attendance."""

    def __init__(
        self,
        salaries: SalaryRepository,
        employees: EmployeeRepository,
        companies: CompanyRepository,
        policies: PolicyStore,
        aggregator: PayrollAggregator,
        *,
        audit: AuditLog,
        calculator: Optional[SalaryCalculator] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._salaries = salaries
        self._employees = employees
        self._companies = companies
        self._policies = policies
        self._aggregator = aggregator
        self._audit = audit
        self._calculator = calculator or SalaryCalculator()
        self._clock = clock

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFound(f"Employee {employee_id} does not exist")
        return employee

    def salary_type_for(self, employee: Employee) -> SalaryType:
        if employee.salary_type:
            return employee.salary_type
        company = self._companies.get_by_id(employee.company_id)
        return company.default_salary_type if company else SalaryType.MONTHLY

    def aggregate(
        self, employee_id: int, company_id: int, month: int, year: int, *, today: Optional[date] = None
    ) -> MonthlySummary:
        return self._aggregator.aggregate(employee_id, company_id, month, year, today=today)

    def compute(
        self,
        employee: Employee,
        month: int,
        year: int,
        *,
        manual_lines: Iterable[SalaryBreakdown] = (),
    ) -> SalaryComputation:
        month, year = require_period(month, year)
        policy = self._policies.get(employee.company_id)
        summary = self._aggregator.aggregate(employee.employee_id, employee.company_id, month, year)
        return self._calculator.calculate(
            employee,
            policy,
            summary,
            self.salary_type_for(employee),
            RateFields.from_employee(employee),
            manual_lines=manual_lines,
        )

    @staticmethod
    def _with_computation(record: SalaryRecord, comp: SalaryComputation) -> SalaryRecord:
        """Fresh figures; the record is back to an unlocked PENDING state."""
        s, t = comp.summary, comp.totals
        return replace(
            record,
            salary_type=comp.salary_type,
            total_working_days=s.full_days,
            half_days=s.half_days,
            absent_days=s.absent_days,
            leave_days=s.leave_days,
            pending_days=s.pending_days,
            late_minutes=s.late_minutes,
            overtime_hours=s.overtime_hours,
            working_hours=s.working_hours,
            base_amount=t.base_amount,
            overtime_amount=t.overtime_amount,
            penalty_amount=t.penalty_amount,
            deductions=t.deductions,
            gross_amount=t.gross,
            net_amount=t.net,
            status=SalaryStatus.PENDING,
            approved_by=None,
            approved_at=None,
            rejected_by=None,
            rejected_at=None,
            rejection_reason=None,
            paid_at=None,
            locked_at=None,
            breakdowns=comp.breakdowns,
        )

    def generate(self, employee_id: int, month: int, year: int, *, actor_id: Optional[int] = None) -> SalaryRecord:
        """Create the employee-month salary, or refresh it if it already exists."""
        month, year = require_period(month, year)
        employee = self._require_employee(employee_id)
        existing = self._salaries.get_for_period(employee.employee_id, employee.company_id, month, year)
        if existing is None:
            comp = self.compute(employee, month, year)
            draft = SalaryRecord(
                salary_id=0,
                employee_id=employee.employee_id,
                company_id=employee.company_id,
                month=month,
                year=year,
                salary_type=comp.salary_type,
            )
            stored = self._salaries.insert_if_absent(self._with_computation(draft, comp))
            if stored is not None:
                safe_audit(
                    self._audit,
                    actor_id,
                    "SALARY_GENERATED",
                    "SALARY",
                    stored.salary_id,
                    {"period": f"{year}-{month:02d}", "gross": str(stored.gross_amount), "net": str(stored.net_amount)},
                )
                return stored
            existing = self._salaries.get_for_period(employee.employee_id, employee.company_id, month, year)
            if existing is None:
                raise NotFound("Salary row vanished while it was being generated")
        return self.refresh(existing, actor_id=actor_id)

    def refresh(self, record: SalaryRecord, *, actor_id: Optional[int] = None) -> SalaryRecord:
        if record.status not in RECALCULABLE:
            raise RecordLocked(f"Salary {record.salary_id} is {record.status.value} and cannot be recalculated")

        employee = self._require_employee(record.employee_id)
        comp = self.compute(employee, record.month, record.year, manual_lines=record.manual_lines)
        updated = self._with_computation(record, comp)
        if not self._salaries.replace_computation(
            updated, expected_version=record.version, expected_statuses=RECALCULABLE
        ):
            raise RecordLocked(f"Salary {record.salary_id} changed while it was being recalculated")

        safe_audit(
            self._audit,
            actor_id,
            "SALARY_RECALCULATED",
            "SALARY",
            record.salary_id,
            {
                "previous_status": record.status.value,
                "gross": str(updated.gross_amount),
                "net": str(updated.net_amount),
                "missing_days": len(comp.summary.missing_dates),
            },
        )
        return replace(updated, version=record.version + 1)

    def refresh_if_pending(
        self, employee_id: int, company_id: int, month: int, year: int, *, actor_id: Optional[int] = None
    ) -> Optional[SalaryRecord]:
        record = self._salaries.get_for_period(int(employee_id), int(company_id), int(month), int(year))
        if record is None or record.status != SalaryStatus.PENDING:
            return None
        logger.info("refreshing pending salary=%s after attendance change", record.salary_id)
        return self.refresh(record, actor_id=actor_id)
