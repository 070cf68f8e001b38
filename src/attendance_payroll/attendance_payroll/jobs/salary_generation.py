from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_JOB_CHUNK_SIZE, DEFAULT_JOB_MAX_WORKERS, PAYROLL_ROLES, SALARY_NOTIFY_ROLES
from ..core.exceptions import DomainError
from ..integrations.audit import SYSTEM_ACTOR
from ..integrations.notifications import Notifier, safe_notify
from ..payroll.service import SalaryService
from ..users.company_model import Company
from ..users.company_repository import CompanyRepository
from ..users.repository import EmployeeRepository
from .base import BatchResult, run_per_tenant

logger = logging.getLogger(__name__)

JOB_NAME = "salary_generation"


def previous_period(now: datetime) -> tuple[int, int]:
    last_month = now.replace(day=1) - timedelta(days=1)
    return last_month.month, last_month.year


class SalaryGenerationJob:
    """Generates or refreshes salaries of every payroll employee for one month."""

    def __init__(
        self,
        companies: CompanyRepository,
        employees: EmployeeRepository,
        salaries: SalaryService,
        *,
        notifier: Notifier,
        clock: Callable[[], datetime] = now_utc,
        chunk_size: int = DEFAULT_JOB_CHUNK_SIZE,
        max_workers: int = DEFAULT_JOB_MAX_WORKERS,
    ):
        self._companies = companies
        self._employees = employees
        self._salaries = salaries
        self._notifier = notifier
        self._clock = clock
        self._chunk_size = chunk_size
        self._max_workers = max_workers

    def run(self, month: Optional[int] = None, year: Optional[int] = None) -> BatchResult:
        if month is None or year is None:
            month, year = previous_period(self._clock())
        return run_per_tenant(
            JOB_NAME,
            self._companies.list_active(),
            lambda company: self.run_for_company(company, month, year),
            chunk_size=self._chunk_size,
            max_workers=self._max_workers,
        )

    def run_for_company(self, company: Company, month: int, year: int) -> BatchResult:
        result = BatchResult()
        for employee in self._employees.list_active(company.company_id, roles=PAYROLL_ROLES):
            try:
                self._salaries.generate(employee.employee_id, month, year, actor_id=SYSTEM_ACTOR)
                result.processed += 1
            except DomainError as exc:
                logger.warning(
                    "salary skipped company=%s employee=%s period=%s-%02d kind=%s: %s",
                    company.company_id,
                    employee.employee_id,
                    year,
                    month,
                    exc.kind,
                    exc,
                )
                result.errors.append(f"employee {employee.employee_id}: {exc.kind}: {exc}")

        if result.processed:
            for admin in self._employees.list_active(company.company_id, roles=SALARY_NOTIFY_ROLES):
                safe_notify(
                    self._notifier,
                    admin.employee_id,
                    "Salaries generated",
                    f"{result.processed} salaries for {year}-{month:02d} are ready for review.",
                )
        return result
