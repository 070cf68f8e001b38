from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import BreakdownType, SalaryStatus, SalaryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime, to_decimal
from .model import SalaryBreakdown, SalaryRecord
from .repository import SalaryRepository

_COLUMNS = """
    salary_id, employee_id, company_id, month, year, salary_type,
    total_working_days, half_days, absent_days, leave_days, pending_days,
    late_minutes, overtime_hours, working_hours,
    base_amount, overtime_amount, penalty_amount, deductions, gross_amount, net_amount,
    status, approved_by, approved_at, rejected_by, rejected_at, rejection_reason,
    paid_at, locked_at, version
"""

# Figures rewritten by a (re)calculation, in this order.
_FIGURES = (
    "salary_type",
    "total_working_days",
    "half_days",
    "absent_days",
    "leave_days",
    "pending_days",
    "late_minutes",
    "overtime_hours",
    "working_hours",
    "base_amount",
    "overtime_amount",
    "penalty_amount",
    "deductions",
    "gross_amount",
    "net_amount",
)

# Lifecycle fields rewritten by a status transition, in this order.
_LIFECYCLE = (
    "status",
    "approved_by",
    "approved_at",
    "rejected_by",
    "rejected_at",
    "rejection_reason",
    "paid_at",
    "locked_at",
)


def _figures(rec: SalaryRecord) -> tuple:
    return (
        rec.salary_type.value,
        rec.total_working_days,
        rec.half_days,
        rec.absent_days,
        rec.leave_days,
        rec.pending_days,
        rec.late_minutes,
        rec.overtime_hours,
        rec.working_hours,
        rec.base_amount,
        rec.overtime_amount,
        rec.penalty_amount,
        rec.deductions,
        rec.gross_amount,
        rec.net_amount,
    )


def _lifecycle(rec: SalaryRecord) -> tuple:
    return (
        rec.status.value,
        rec.approved_by,
        to_db_datetime(rec.approved_at),
        rec.rejected_by,
        to_db_datetime(rec.rejected_at),
        rec.rejection_reason,
        to_db_datetime(rec.paid_at),
        to_db_datetime(rec.locked_at),
    )


def _row_to_line(r: dict) -> SalaryBreakdown:
    return SalaryBreakdown(
        breakdown_type=BreakdownType(r["breakdown_type"]),
        description=r["description"],
        amount=to_decimal(r["amount"]),
        quantity=to_decimal(r.get("quantity"), "1"),
        line_date=r.get("line_date"),
        manual=bool(r.get("is_manual")),
        breakdown_id=int(r["breakdown_id"]),
    )


def _row_to_salary(r: dict, lines: Sequence[SalaryBreakdown]) -> SalaryRecord:
    return SalaryRecord(
        salary_id=int(r["salary_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        salary_type=SalaryType(r["salary_type"]),
        total_working_days=int(r.get("total_working_days") or 0),
        half_days=int(r.get("half_days") or 0),
        absent_days=int(r.get("absent_days") or 0),
        leave_days=int(r.get("leave_days") or 0),
        pending_days=int(r.get("pending_days") or 0),
        late_minutes=int(r.get("late_minutes") or 0),
        overtime_hours=to_decimal(r.get("overtime_hours")),
        working_hours=to_decimal(r.get("working_hours")),
        base_amount=to_decimal(r.get("base_amount")),
        overtime_amount=to_decimal(r.get("overtime_amount")),
        penalty_amount=to_decimal(r.get("penalty_amount")),
        deductions=to_decimal(r.get("deductions")),
        gross_amount=to_decimal(r.get("gross_amount")),
        net_amount=to_decimal(r.get("net_amount")),
        status=SalaryStatus(r["status"]),
        approved_by=r.get("approved_by"),
        approved_at=from_db_datetime(r.get("approved_at")),
        rejected_by=r.get("rejected_by"),
        rejected_at=from_db_datetime(r.get("rejected_at")),
        rejection_reason=r.get("rejection_reason"),
        paid_at=from_db_datetime(r.get("paid_at")),
        locked_at=from_db_datetime(r.get("locked_at")),
        version=int(r.get("version") or 0),
        breakdowns=tuple(lines),
    )


class MySQLSalaryRepository(SalaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load_lines(cur, salary_id: int) -> list[SalaryBreakdown]:
        cur.execute(
            """
            SELECT breakdown_id, breakdown_type, description, amount, quantity, line_date, is_manual
            FROM salary_breakdowns
            WHERE salary_id=%s
            ORDER BY breakdown_id
            """,
            (int(salary_id),),
        )
        return [_row_to_line(r) for r in fetchall(cur)]

    @staticmethod
    def _insert_lines(cur, salary_id: int, lines: Sequence[SalaryBreakdown]) -> None:
        for line in lines:
            cur.execute(
                """
                INSERT INTO salary_breakdowns(salary_id, breakdown_type, description, amount, quantity, line_date, is_manual)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(salary_id),
                    line.breakdown_type.value,
                    line.description,
                    line.amount,
                    line.quantity,
                    line.line_date,
                    int(line.manual),
                ),
            )

    def get(self, salary_id: int) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salaries WHERE salary_id=%s", (int(salary_id),))
            r = fetchone(cur)
            if not r:
                return None
            return _row_to_salary(r, self._load_lines(cur, int(r["salary_id"])))

    def get_for_period(self, employee_id: int, company_id: int, month: int, year: int) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM salaries
                WHERE employee_id=%s AND company_id=%s AND month=%s AND year=%s
                """,
                (int(employee_id), int(company_id), int(month), int(year)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return _row_to_salary(r, self._load_lines(cur, int(r["salary_id"])))

    def insert_if_absent(self, record: SalaryRecord) -> Optional[SalaryRecord]:
        columns = ("employee_id", "company_id", "month", "year", *_FIGURES, *_LIFECYCLE)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT IGNORE INTO salaries({", ".join(columns)}, version)
                VALUES({", ".join(["%s"] * len(columns))}, 0)
                """,
                (
                    record.employee_id,
                    record.company_id,
                    record.month,
                    record.year,
                    *_figures(record),
                    *_lifecycle(record),
                ),
            )
            if cur.rowcount == 0:
                return None
            salary_id = int(cur.lastrowid)
            self._insert_lines(cur, salary_id, record.breakdowns)
            lines = self._load_lines(cur, salary_id)
        return replace(record, salary_id=salary_id, version=0, breakdowns=tuple(lines))

    def replace_computation(
        self,
        record: SalaryRecord,
        *,
        expected_version: int,
        expected_statuses: Sequence[SalaryStatus],
    ) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in (*_FIGURES, *_LIFECYCLE))
        status_in = ", ".join(["%s"] * len(expected_statuses))
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(
                f"""
                UPDATE salaries
                SET {assignments}, version=version+1
                WHERE salary_id=%s AND version=%s AND status IN ({status_in})
                """,
                (
                    *_figures(record),
                    *_lifecycle(record),
                    int(record.salary_id),
                    int(expected_version),
                    *(s.value for s in expected_statuses),
                ),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            cur.execute("DELETE FROM salary_breakdowns WHERE salary_id=%s AND is_manual=0", (int(record.salary_id),))
            self._insert_lines(cur, record.salary_id, [b for b in record.breakdowns if not b.manual])
            return True

    def transition(self, record: SalaryRecord, *, expected_status: SalaryStatus, expected_version: int) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in _LIFECYCLE)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE salaries
                SET {assignments}, version=version+1
                WHERE salary_id=%s AND version=%s AND status=%s
                """,
                (*_lifecycle(record), int(record.salary_id), int(expected_version), expected_status.value),
            )
            return cur.rowcount > 0

    def append_line(self, record: SalaryRecord, line: SalaryBreakdown, *, expected_version: int) -> bool:
        assignments = ", ".join(f"{col}=%s" for col in _FIGURES)
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(
                f"""
                UPDATE salaries
                SET {assignments}, version=version+1
                WHERE salary_id=%s AND version=%s AND status='PENDING' AND locked_at IS NULL
                """,
                (*_figures(record), int(record.salary_id), int(expected_version)),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            self._insert_lines(cur, record.salary_id, [line])
            return True
