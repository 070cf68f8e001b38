from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...core.enums import SalaryType
from ...policy.model import Policy
from ..model import MonthlySummary, RateFields


@dataclass(frozen=True)
class BasePay:
    amount: Decimal
    quantity: Decimal
    description: str


class BasePayStrategy(ABC):
    """How one salary type turns a month of attendance into base pay (Strategy Pattern)."""

    salary_type: SalaryType

    @abstractmethod
    def require_rate(self, rates: RateFields) -> Decimal:
        """The rate this salary type cannot be computed without; raises MissingRate."""

        raise NotImplementedError

    @abstractmethod
    def base_pay(self, rates: RateFields, summary: MonthlySummary, policy: Policy) -> BasePay:
        raise NotImplementedError
