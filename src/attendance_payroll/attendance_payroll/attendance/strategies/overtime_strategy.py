from __future__ import annotations

from ...core.enums import ApprovalTrigger
from .base import ApprovalRule, ClosedDay


class OvertimeRule(ApprovalRule):
    """Overtime accrued past shift length + threshold."""

    trigger = ApprovalTrigger.OVERTIME

    def applies(self, day: ClosedDay) -> bool:
        return day.overtime_hours > 0

    def describe(self, day: ClosedDay) -> str:
        return f"overtime {day.overtime_hours} h"
