from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Attendance persistence.

    Writes are conditional: ``compare_and_set`` only succeeds when the stored
    row still carries ``expected_version`` (and, with ``require_open``, is still
    PENDING with no punch-out and no auto punch-out). Callers never read-then-write.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(
        self, employee_id: int, company_id: int, attendance_date: date
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_open(
        self, employee_id: int, company_id: int, dates: Sequence[date]
    ) -> Sequence[AttendanceRecord]:
        """PENDING records on ``dates`` with a punch-in and no punch-out."""

        raise NotImplementedError

    def list_open_for_company(self, company_id: int, dates: Sequence[date]) -> Sequence[AttendanceRecord]:
        """Open PENDING records not yet auto punched out, for the recovery job."""

        raise NotImplementedError

    def list_for_employee_between(
        self, employee_id: int, company_id: int, start: date, end: date
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def insert_if_absent(self, record: AttendanceRecord) -> Optional[AttendanceRecord]:
        """Insert guarded by the (employee, company, date) key.

        Returns the stored record, or None when a row already exists.
        """

        raise NotImplementedError

    def compare_and_set(
        self,
        record: AttendanceRecord,
        *,
        expected_version: int,
        require_open: bool = False,
    ) -> bool:
        raise NotImplementedError
