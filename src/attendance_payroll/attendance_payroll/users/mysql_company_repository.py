from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import SalaryType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .company_model import Company
from .company_repository import CompanyRepository


def _row_to_company(r: dict) -> Company:
    return Company(
        company_id=int(r["company_id"]),
        name=r["name"],
        default_salary_type=SalaryType(r.get("default_salary_type") or SalaryType.MONTHLY.value),
        is_active=r.get("status") == "ACTIVE",
    )


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT company_id, name, default_salary_type, status FROM companies WHERE company_id=%s",
                (int(company_id),),
            )
            row = fetchone(cur)
            return _row_to_company(row) if row else None

    def list_active(self) -> Sequence[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, name, default_salary_type, status
                FROM companies
                WHERE status='ACTIVE'
                ORDER BY company_id
                """
            )
            return [_row_to_company(r) for r in fetchall(cur)]
