from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...core.enums import ApprovalTrigger
from ...policy.model import Policy


@dataclass(frozen=True)
class ClosedDay:
    """What the approval rules see once a day has both punches."""

    is_late: bool
    late_minutes: int
    working_hours: Decimal
    overtime_hours: Decimal
    policy: Policy


class ApprovalRule(ABC):
    """Strategy Pattern: one named reason a day needs manager approval."""

    trigger: ApprovalTrigger

    @abstractmethod
    def applies(self, day: ClosedDay) -> bool:
        raise NotImplementedError

    @abstractmethod
    def describe(self, day: ClosedDay) -> str:
        raise NotImplementedError
