from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..core.enums import BreakdownType, SalaryStatus, SalaryType
from ..users.model import Employee

MONEY_QUANT = Decimal("0.01")
ZERO = Decimal("0")


def money(value) -> Decimal:
    """Round an amount to 2 places, half up."""
    return Decimal(str(value)).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class MonthlySummary:
    """Attendance for one employee-month, classified for payroll."""

    employee_id: int
    company_id: int
    month: int
    year: int
    full_days: int = 0
    half_days: int = 0
    absent_days: int = 0
    leave_days: int = 0
    pending_days: int = 0
    records_found: int = 0
    late_minutes: int = 0
    overtime_hours: Decimal = ZERO
    working_hours: Decimal = ZERO
    missing_dates: tuple[date, ...] = ()

    @property
    def paid_days(self) -> Decimal:
        return Decimal(self.full_days) + Decimal(self.half_days) * Decimal("0.5")

    @property
    def classified_days(self) -> int:
        return self.full_days + self.half_days + self.absent_days + self.leave_days + self.pending_days


@dataclass(frozen=True)
class RateFields:
    base_salary: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    overtime_rate: Optional[Decimal] = None
    working_days: Optional[int] = None

    @classmethod
    def from_employee(cls, employee: Employee) -> "RateFields":
        return cls(
            base_salary=employee.base_salary,
            daily_rate=employee.daily_rate,
            hourly_rate=employee.hourly_rate,
            overtime_rate=employee.overtime_rate,
            working_days=employee.working_days,
        )


@dataclass(frozen=True)
class SalaryBreakdown:
    """One signed salary line. Earnings are positive, everything else negative."""

    breakdown_type: BreakdownType
    description: str
    amount: Decimal
    quantity: Decimal = Decimal("1")
    line_date: Optional[date] = None
    manual: bool = False
    breakdown_id: Optional[int] = None


@dataclass(frozen=True)
class Totals:
    base_amount: Decimal
    overtime_amount: Decimal
    penalty_amount: Decimal
    deductions: Decimal
    gross: Decimal
    net: Decimal


_PENALTIES = frozenset({BreakdownType.LATE_PENALTY, BreakdownType.ABSENCE_DEDUCTION})


def totals(lines: Iterable[SalaryBreakdown]) -> Totals:
    """Header figures derived from lines alone."""
    base = overtime = penalty = deductions = gross = ZERO
    for line in lines:
        amount = money(line.amount)
        if line.breakdown_type.is_earning:
            gross += amount
            if line.breakdown_type == BreakdownType.BASE_SALARY:
                base += amount
            elif line.breakdown_type == BreakdownType.OVERTIME:
                overtime += amount
        elif line.breakdown_type in _PENALTIES:
            penalty += abs(amount)
        else:
            deductions += abs(amount)
    return Totals(
        base_amount=base,
        overtime_amount=overtime,
        penalty_amount=penalty,
        deductions=deductions,
        gross=gross,
        net=gross - penalty - deductions,
    )


@dataclass(frozen=True)
class SalaryComputation:
    salary_type: SalaryType
    summary: MonthlySummary
    breakdowns: tuple[SalaryBreakdown, ...]
    totals: Totals

    @property
    def gross(self) -> Decimal:
        return self.totals.gross

    @property
    def net(self) -> Decimal:
        return self.totals.net


@dataclass(frozen=True)
class SalaryRecord:
    """Domain entity: one employee's salary for one month, with its lines."""

    salary_id: int
    employee_id: int
    company_id: int
    month: int
    year: int
    salary_type: SalaryType
    total_working_days: int = 0
    half_days: int = 0
    absent_days: int = 0
    leave_days: int = 0
    pending_days: int = 0
    late_minutes: int = 0
    overtime_hours: Decimal = ZERO
    working_hours: Decimal = ZERO
    base_amount: Decimal = ZERO
    overtime_amount: Decimal = ZERO
    penalty_amount: Decimal = ZERO
    deductions: Decimal = ZERO
    gross_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    status: SalaryStatus = SalaryStatus.PENDING
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    version: int = 0
    breakdowns: tuple[SalaryBreakdown, ...] = ()

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None

    @property
    def manual_lines(self) -> tuple[SalaryBreakdown, ...]:
        return tuple(b for b in self.breakdowns if b.manual)
