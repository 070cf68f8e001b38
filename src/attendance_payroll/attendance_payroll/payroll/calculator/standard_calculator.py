from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ...core.enums import BreakdownType, SalaryType
from ...policy.model import Policy
from ...users.model import Employee
from ..model import MonthlySummary, RateFields, SalaryBreakdown, SalaryComputation, money, totals
from .base import BasePayStrategy
from .base_pay import BASE_PAY_STRATEGIES, month_working_days

_HUNDRED = Decimal("100")


class SalaryCalculator:
    """Standard rule set: base pay by salary type, overtime, penalties, PF/ESI.

    Every line is rounded when it is created so the header totals can always
    be rebuilt from the stored lines.
    """

    def __init__(self, strategies: Optional[Mapping[SalaryType, BasePayStrategy]] = None):
        self._strategies = dict(strategies or BASE_PAY_STRATEGIES)

    def effective_hourly_rate(self, rates: RateFields, summary: MonthlySummary, policy: Policy) -> Optional[Decimal]:
        shift_hours = policy.shift_hours
        if rates.hourly_rate:
            return Decimal(rates.hourly_rate)
        if rates.daily_rate and shift_hours:
            return Decimal(rates.daily_rate) / shift_hours
        if rates.base_salary and shift_hours:
            return Decimal(rates.base_salary) / (Decimal(month_working_days(rates, summary)) * shift_hours)
        return None

    def calculate(
        self,
        employee: Employee,
        policy: Policy,
        summary: MonthlySummary,
        salary_type: SalaryType,
        rates: Optional[RateFields] = None,
        *,
        manual_lines: Iterable[SalaryBreakdown] = (),
    ) -> SalaryComputation:
        rates = rates or RateFields.from_employee(employee)
        strategy = self._strategies[salary_type]
        strategy.require_rate(rates)

        lines: list[SalaryBreakdown] = []
        base = strategy.base_pay(rates, summary, policy)
        base_amount = money(base.amount)
        lines.append(
            SalaryBreakdown(BreakdownType.BASE_SALARY, base.description, base_amount, quantity=base.quantity)
        )

        if summary.overtime_hours > 0:
            if rates.overtime_rate:
                ot_rate = Decimal(rates.overtime_rate)
            else:
                hourly = self.effective_hourly_rate(rates, summary, policy) or Decimal("0")
                ot_rate = Decimal(policy.overtime_multiplier) * hourly
            lines.append(
                SalaryBreakdown(
                    BreakdownType.OVERTIME,
                    f"Overtime: {summary.overtime_hours} h at {money(ot_rate)}",
                    money(ot_rate * summary.overtime_hours),
                    quantity=summary.overtime_hours,
                )
            )

        if policy.enable_late_penalty and summary.late_minutes > 0:
            lines.append(
                SalaryBreakdown(
                    BreakdownType.LATE_PENALTY,
                    f"Late arrival: {summary.late_minutes} min",
                    -money(Decimal(policy.late_penalty_per_minute) * summary.late_minutes),
                    quantity=Decimal(summary.late_minutes),
                )
            )

        if policy.enable_absent_penalty and summary.absent_days > 0:
            lines.append(
                SalaryBreakdown(
                    BreakdownType.ABSENCE_DEDUCTION,
                    f"Absence: {summary.absent_days} days",
                    -money(Decimal(policy.absent_penalty_per_day) * summary.absent_days),
                    quantity=Decimal(summary.absent_days),
                )
            )

        if employee.pf_esi_applicable:
            lines.append(
                SalaryBreakdown(
                    BreakdownType.PF_DEDUCTION,
                    f"Provident fund {policy.pf_percentage}%",
                    -money(base_amount * Decimal(policy.pf_percentage) / _HUNDRED),
                )
            )
            lines.append(
                SalaryBreakdown(
                    BreakdownType.ESI_DEDUCTION,
                    f"Employee state insurance {policy.esi_percentage}%",
                    -money(base_amount * Decimal(policy.esi_percentage) / _HUNDRED),
                )
            )

        lines.extend(manual_lines)
        return SalaryComputation(
            salary_type=salary_type,
            summary=summary,
            breakdowns=tuple(lines),
            totals=totals(lines),
        )
