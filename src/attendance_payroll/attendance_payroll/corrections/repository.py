from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CorrectionType, RequestStatus
from .model import CorrectionRequest


class CorrectionRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def find_pending(
        self,
        employee_id: int,
        company_id: int,
        attendance_date: date,
        correction_type: CorrectionType,
    ) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def list_pending(self, company_id: int) -> Sequence[CorrectionRequest]:
        raise NotImplementedError

    def create(self, request: CorrectionRequest) -> CorrectionRequest:
        raise NotImplementedError

    def decide(
        self,
        request_id: int,
        *,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_note: Optional[str],
        approved_time: Optional[datetime],
    ) -> bool:
        """Record the review; only succeeds while the request is still PENDING."""

        raise NotImplementedError

    def reopen(self, request_id: int, *, from_status: RequestStatus) -> bool:
        """Put a claimed request back to PENDING and clear its review fields."""

        raise NotImplementedError
