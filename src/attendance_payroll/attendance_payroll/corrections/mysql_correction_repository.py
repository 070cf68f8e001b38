from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import ensure_aware
from ..core.enums import CorrectionType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import CorrectionRequest
from .repository import CorrectionRepository

_COLUMNS = """
    request_id, employee_id, company_id, attendance_id, correction_type, attendance_date,
    requested_time, reason, status, created_at, reviewed_by, reviewed_at, review_note, approved_time
"""


def _row_to_request(r: dict) -> CorrectionRequest:
    return CorrectionRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        attendance_id=int(r["attendance_id"]) if r.get("attendance_id") is not None else None,
        correction_type=CorrectionType(r["correction_type"]),
        attendance_date=r["attendance_date"],
        requested_time=ensure_aware(r["requested_time"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=from_db_datetime(r.get("created_at")),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=from_db_datetime(r.get("reviewed_at")),
        review_note=r.get("review_note"),
        approved_time=from_db_datetime(r.get("approved_time")),
    )


class MySQLCorrectionRepository(CorrectionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM correction_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def find_pending(
        self,
        employee_id: int,
        company_id: int,
        attendance_date: date,
        correction_type: CorrectionType,
    ) -> Optional[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM correction_requests
                WHERE employee_id=%s AND company_id=%s AND attendance_date=%s
                  AND correction_type=%s AND status='PENDING'
                LIMIT 1
                """,
                (int(employee_id), int(company_id), attendance_date, correction_type.value),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_pending(self, company_id: int) -> Sequence[CorrectionRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM correction_requests
                WHERE company_id=%s AND status='PENDING'
                ORDER BY created_at, request_id
                """,
                (int(company_id),),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def create(self, request: CorrectionRequest) -> CorrectionRequest:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO correction_requests(
                    employee_id, company_id, attendance_id, correction_type, attendance_date,
                    requested_time, reason, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request.employee_id),
                    int(request.company_id),
                    request.attendance_id,
                    request.correction_type.value,
                    request.attendance_date,
                    to_db_datetime(request.requested_time),
                    request.reason,
                    request.status.value,
                    to_db_datetime(request.created_at),
                ),
            )
            return replace(request, request_id=int(cur.lastrowid))

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE correction_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_note=%s, approved_time=%s
                WHERE request_id=%s AND status='PENDING'
                """,
                (
                    status.value,
                    int(reviewed_by),
                    to_db_datetime(reviewed_at),
                    review_note,
                    to_db_datetime(approved_time),
                    int(request_id),
                ),
            )
            return cur.rowcount > 0

    def reopen(self, request_id: int, *, from_status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE correction_requests
                SET status='PENDING', reviewed_by=NULL, reviewed_at=NULL, review_note=NULL, approved_time=NULL
                WHERE request_id=%s AND status=%s
                """,
                (int(request_id), from_status.value),
            )
            return cur.rowcount > 0
