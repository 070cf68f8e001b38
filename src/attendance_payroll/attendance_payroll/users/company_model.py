from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import SalaryType


@dataclass(frozen=True)
class Company:
    """Tenant row as seen by the batch jobs."""

    company_id: int
    name: str
    default_salary_type: SalaryType = SalaryType.MONTHLY
    is_active: bool = True
