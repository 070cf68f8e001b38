from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import SalaryStatus
from .model import SalaryBreakdown, SalaryRecord


class SalaryRepository(Protocol):
    """Salary persistence.

    Every mutation is conditional on the stored ``version`` (and status) and
    bumps it; a False return means another writer got there first.
    """

    def get(self, salary_id: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def get_for_period(self, employee_id: int, company_id: int, month: int, year: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def insert_if_absent(self, record: SalaryRecord) -> Optional[SalaryRecord]:
        """Insert header and lines guarded by the (employee, company, month, year) key."""

        raise NotImplementedError

    def replace_computation(
        self,
        record: SalaryRecord,
        *,
        expected_version: int,
        expected_statuses: Sequence[SalaryStatus],
    ) -> bool:
        """Atomically rewrite the header and every non-manual line; manual lines stay."""

        raise NotImplementedError

    def transition(self, record: SalaryRecord, *, expected_status: SalaryStatus, expected_version: int) -> bool:
        raise NotImplementedError

    def append_line(self, record: SalaryRecord, line: SalaryBreakdown, *, expected_version: int) -> bool:
        """Add one line and write the header totals of ``record`` in the same transaction."""

        raise NotImplementedError
