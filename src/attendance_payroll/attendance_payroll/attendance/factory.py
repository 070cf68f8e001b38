from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..core.enums import ApprovalTrigger
from .strategies.base import ApprovalRule, ClosedDay
from .strategies.late_strategy import LateArrivalRule
from .strategies.overtime_strategy import OvertimeRule
from .strategies.under_hours_strategy import UnderMinHoursRule


@dataclass(frozen=True)
class ApprovalDecision:
    triggers: tuple[ApprovalTrigger, ...]
    reason: Optional[str]

    @property
    def requires_approval(self) -> bool:
        return bool(self.triggers)


def default_rules() -> list[ApprovalRule]:
    return [LateArrivalRule(), UnderMinHoursRule(), OvertimeRule()]


@dataclass
class ApprovalRuleFactory:
    """Factory Pattern: the ordered rule set evaluated at punch-out.

    Every rule is evaluated; each one that fires is recorded by name so the
    approval reason can be rebuilt from the stored triggers.
    """

    rules: Sequence[ApprovalRule] = field(default_factory=default_rules)

    def evaluate(self, day: ClosedDay) -> ApprovalDecision:
        fired = [rule for rule in self.rules if rule.applies(day)]
        if not fired:
            return ApprovalDecision(triggers=(), reason=None)
        return ApprovalDecision(
            triggers=tuple(rule.trigger for rule in fired),
            reason="; ".join(rule.describe(day) for rule in fired),
        )
