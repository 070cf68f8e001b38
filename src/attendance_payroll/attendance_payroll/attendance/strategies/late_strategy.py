from __future__ import annotations

from ...core.enums import ApprovalTrigger
from .base import ApprovalRule, ClosedDay


class LateArrivalRule(ApprovalRule):
    """Punch-in after shift start + grace."""

    trigger = ApprovalTrigger.LATE_ARRIVAL

    def applies(self, day: ClosedDay) -> bool:
        return day.is_late

    def describe(self, day: ClosedDay) -> str:
        return f"late arrival ({day.late_minutes} min)"
