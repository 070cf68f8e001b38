from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import EmployeeStatus, Role, SalaryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, company_id, full_name, role, status, salary_type,
    base_salary, daily_rate, hourly_rate, overtime_rate, working_days, pf_esi_applicable
"""


def _optional_decimal(value):
    return to_decimal(value) if value is not None else None


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        status=EmployeeStatus(r["status"]),
        salary_type=SalaryType(r["salary_type"]) if r.get("salary_type") else None,
        base_salary=_optional_decimal(r.get("base_salary")),
        daily_rate=_optional_decimal(r.get("daily_rate")),
        hourly_rate=_optional_decimal(r.get("hourly_rate")),
        overtime_rate=_optional_decimal(r.get("overtime_rate")),
        working_days=int(r["working_days"]) if r.get("working_days") else None,
        pf_esi_applicable=bool(r.get("pf_esi_applicable") or False),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_active(self, company_id: int, *, roles: Sequence[str]) -> Sequence[Employee]:
        if not roles:
            return []
        placeholders = ", ".join(["%s"] * len(roles))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE company_id=%s AND status='ACTIVE' AND role IN ({placeholders})
                ORDER BY employee_id
                """,
                (int(company_id), *roles),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
