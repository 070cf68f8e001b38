from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import EmployeeStatus, Role, SalaryType


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee of one company, with pay settings.

    Note: Identity and login live elsewhere; this is the payroll-relevant view.
    """

    employee_id: int
    company_id: int
    full_name: str
    role: Role
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    salary_type: Optional[SalaryType] = None
    base_salary: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    overtime_rate: Optional[Decimal] = None
    working_days: Optional[int] = None
    pf_esi_applicable: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE
