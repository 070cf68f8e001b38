from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...common.datetime_utils import days_in_month
from ...core.enums import SalaryType
from ...core.exceptions import MissingRate
from ...policy.model import Policy
from ..model import MonthlySummary, RateFields
from .base import BasePay, BasePayStrategy


def _require(value: Optional[Decimal], name: str, salary_type: SalaryType) -> Decimal:
    if value is None or Decimal(value) <= 0:
        raise MissingRate(f"{name} is not set for {salary_type.value.lower()} salary")
    return Decimal(value)


def month_working_days(rates: RateFields, summary: MonthlySummary) -> int:
    """Employee override, otherwise calendar days of the month."""
    return int(rates.working_days or days_in_month(summary.year, summary.month))


class MonthlyBasePay(BasePayStrategy):
    salary_type = SalaryType.MONTHLY

    def require_rate(self, rates: RateFields) -> Decimal:
        return _require(rates.base_salary, "base_salary", self.salary_type)

    def base_pay(self, rates: RateFields, summary: MonthlySummary, policy: Policy) -> BasePay:
        salary = self.require_rate(rates)
        days = month_working_days(rates, summary)
        return BasePay(
            amount=salary * summary.paid_days / Decimal(days),
            quantity=summary.paid_days,
            description=f"Monthly salary for {summary.paid_days} of {days} days",
        )


class DailyBasePay(BasePayStrategy):
    salary_type = SalaryType.DAILY

    def require_rate(self, rates: RateFields) -> Decimal:
        return _require(rates.daily_rate, "daily_rate", self.salary_type)

    def base_pay(self, rates: RateFields, summary: MonthlySummary, policy: Policy) -> BasePay:
        rate = self.require_rate(rates)
        return BasePay(
            amount=rate * summary.paid_days,
            quantity=summary.paid_days,
            description=f"Daily wage: {summary.paid_days} days at {rate}",
        )


class HourlyBasePay(BasePayStrategy):
    salary_type = SalaryType.HOURLY

    def require_rate(self, rates: RateFields) -> Decimal:
        return _require(rates.hourly_rate, "hourly_rate", self.salary_type)

    def base_pay(self, rates: RateFields, summary: MonthlySummary, policy: Policy) -> BasePay:
        rate = self.require_rate(rates)
        return BasePay(
            amount=rate * summary.working_hours,
            quantity=summary.working_hours,
            description=f"Hourly wage: {summary.working_hours} h at {rate}",
        )


BASE_PAY_STRATEGIES: dict[SalaryType, BasePayStrategy] = {
    s.salary_type: s for s in (MonthlyBasePay(), DailyBasePay(), HourlyBasePay())
}
