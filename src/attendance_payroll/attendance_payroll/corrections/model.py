from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import CorrectionType, RequestStatus


@dataclass(frozen=True)
class CorrectionRequest:
    """An employee's request to fix a missed punch on one attendance day.

    ``attendance_id`` is None for a missed punch-in on a day that has no
    record yet.
    """

    request_id: int
    employee_id: int
    company_id: int
    attendance_id: Optional[int]
    correction_type: CorrectionType
    attendance_date: date
    requested_time: datetime
    reason: str
    status: RequestStatus = RequestStatus.PENDING
    created_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None
    approved_time: Optional[datetime] = None

    @property
    def effective_time(self) -> datetime:
        return self.approved_time or self.requested_time
