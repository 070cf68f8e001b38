from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ApprovalTrigger, AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime, to_decimal
from .model import AttendanceRecord, GeoPoint
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, company_id, attendance_date, status,
    punch_in_at, punch_out_at, working_hours, overtime_hours,
    is_late, late_minutes, hours_capped, auto_punched_out, auto_punch_out_at,
    requires_approval, approval_triggers, approval_reason,
    approved_by, approved_at, rejected_by, rejected_at, rejection_reason,
    punch_in_lat, punch_in_lng, punch_out_lat, punch_out_lng,
    punch_in_photo, punch_out_photo, version
"""

# Columns written by both INSERT and conditional UPDATE, in this order.
_MUTABLE = (
    "status",
    "punch_in_at",
    "punch_out_at",
    "working_hours",
    "overtime_hours",
    "is_late",
    "late_minutes",
    "hours_capped",
    "auto_punched_out",
    "auto_punch_out_at",
    "requires_approval",
    "approval_triggers",
    "approval_reason",
    "approved_by",
    "approved_at",
    "rejected_by",
    "rejected_at",
    "rejection_reason",
    "punch_in_lat",
    "punch_in_lng",
    "punch_out_lat",
    "punch_out_lng",
    "punch_in_photo",
    "punch_out_photo",
)


def _point(lat, lng) -> Optional[GeoPoint]:
    if lat is None or lng is None:
        return None
    return GeoPoint(float(lat), float(lng))


def _row_to_record(r: dict) -> AttendanceRecord:
    triggers = tuple(ApprovalTrigger(t) for t in (r.get("approval_triggers") or "").split(",") if t)
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        punch_in_at=from_db_datetime(r.get("punch_in_at")),
        punch_out_at=from_db_datetime(r.get("punch_out_at")),
        working_hours=to_decimal(r.get("working_hours")),
        overtime_hours=to_decimal(r.get("overtime_hours")),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        hours_capped=bool(r.get("hours_capped")),
        auto_punched_out=bool(r.get("auto_punched_out")),
        auto_punch_out_at=from_db_datetime(r.get("auto_punch_out_at")),
        requires_approval=bool(r.get("requires_approval")),
        approval_triggers=triggers,
        approval_reason=r.get("approval_reason"),
        approved_by=r.get("approved_by"),
        approved_at=from_db_datetime(r.get("approved_at")),
        rejected_by=r.get("rejected_by"),
        rejected_at=from_db_datetime(r.get("rejected_at")),
        rejection_reason=r.get("rejection_reason"),
        punch_in_location=_point(r.get("punch_in_lat"), r.get("punch_in_lng")),
        punch_out_location=_point(r.get("punch_out_lat"), r.get("punch_out_lng")),
        punch_in_photo=r.get("punch_in_photo"),
        punch_out_photo=r.get("punch_out_photo"),
        version=int(r.get("version") or 0),
    )


def _mutable_values(rec: AttendanceRecord) -> tuple:
    pin = rec.punch_in_location
    pout = rec.punch_out_location
    return (
        rec.status.value,
        to_db_datetime(rec.punch_in_at),
        to_db_datetime(rec.punch_out_at),
        rec.working_hours,
        rec.overtime_hours,
        int(rec.is_late),
        int(rec.late_minutes),
        int(rec.hours_capped),
        int(rec.auto_punched_out),
        to_db_datetime(rec.auto_punch_out_at),
        int(rec.requires_approval),
        ",".join(t.value for t in rec.approval_triggers) or None,
        rec.approval_reason,
        rec.approved_by,
        to_db_datetime(rec.approved_at),
        rec.rejected_by,
        to_db_datetime(rec.rejected_at),
        rec.rejection_reason,
        pin.lat if pin else None,
        pin.lng if pin else None,
        pout.lat if pout else None,
        pout.lng if pout else None,
        rec.punch_in_photo,
        rec.punch_out_photo,
    )


def _in_clause(values: Sequence) -> str:
    return ", ".join(["%s"] * len(values))


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(
        self, employee_id: int, company_id: int, attendance_date: date
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND company_id=%s AND attendance_date=%s
                """,
                (int(employee_id), int(company_id), attendance_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def find_open(self, employee_id: int, company_id: int, dates: Sequence[date]) -> Sequence[AttendanceRecord]:
        if not dates:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND company_id=%s
                  AND status='PENDING' AND punch_in_at IS NOT NULL AND punch_out_at IS NULL
                  AND attendance_date IN ({_in_clause(dates)})
                ORDER BY attendance_date DESC, punch_in_at DESC
                """,
                (int(employee_id), int(company_id), *dates),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_open_for_company(self, company_id: int, dates: Sequence[date]) -> Sequence[AttendanceRecord]:
        if not dates:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE company_id=%s
                  AND status='PENDING' AND punch_in_at IS NOT NULL AND punch_out_at IS NULL
                  AND auto_punched_out=0
                  AND attendance_date IN ({_in_clause(dates)})
                ORDER BY attendance_id
                """,
                (int(company_id), *dates),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_employee_between(
        self, employee_id: int, company_id: int, start: date, end: date
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND company_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date
                """,
                (int(employee_id), int(company_id), start, end),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def insert_if_absent(self, record: AttendanceRecord) -> Optional[AttendanceRecord]:
        columns = ("employee_id", "company_id", "attendance_date", *_MUTABLE)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT IGNORE INTO attendance_records({", ".join(columns)}, version)
                VALUES({_in_clause(columns)}, 0)
                """,
                (record.employee_id, record.company_id, record.attendance_date, *_mutable_values(record)),
            )
            if cur.rowcount == 0:
                return None
            new_id = int(cur.lastrowid)
        return AttendanceRecord(**{**record.__dict__, "attendance_id": new_id, "version": 0})

    def compare_and_set(
        self,
        record: AttendanceRecord,
        *,
        expected_version: int,
        require_open: bool = False,
    ) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in _MUTABLE)
        guard = " AND status='PENDING' AND punch_out_at IS NULL AND auto_punched_out=0" if require_open else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {assignments}, version=version+1
                WHERE attendance_id=%s AND version=%s{guard}
                """,
                (*_mutable_values(record), int(record.attendance_id), int(expected_version)),
            )
            return cur.rowcount > 0
