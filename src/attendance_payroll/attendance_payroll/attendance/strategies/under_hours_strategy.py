from __future__ import annotations

from decimal import Decimal

from ...core.enums import ApprovalTrigger
from .base import ApprovalRule, ClosedDay


class UnderMinHoursRule(ApprovalRule):
    """Worked less than the policy minimum."""

    trigger = ApprovalTrigger.UNDER_MIN_HOURS

    def applies(self, day: ClosedDay) -> bool:
        return day.working_hours < Decimal(day.policy.min_working_hours)

    def describe(self, day: ClosedDay) -> str:
        return f"worked {day.working_hours} h, below minimum {day.policy.min_working_hours} h"
