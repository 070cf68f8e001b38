from __future__ import annotations

from datetime import time
from typing import Optional

from ..common.datetime_utils import parse_hhmm
from ..core import constants as c
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time, to_decimal
from .model import Policy
from .repository import PolicyRepository


def _time_or(value, default: str) -> time:
    return normalize_mysql_time(value) or parse_hhmm(default)


def _int_or(value, default: int) -> int:
    return int(value) if value is not None else default


class MySQLPolicyRepository(PolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self, company_id: int) -> Optional[Policy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, shift_start_time, shift_end_time, grace_period_minutes,
                       min_working_hours, max_daily_hours, auto_punch_out_buffer_minutes,
                       location_lat, location_lng, location_radius,
                       overtime_threshold_hours, night_punch_in_window_hours,
                       enable_late_penalty, late_penalty_per_minute,
                       enable_absent_penalty, absent_penalty_per_day,
                       half_day_threshold_hours, pf_percentage, esi_percentage,
                       overtime_multiplier, timezone
                FROM companies
                WHERE company_id=%s
                """,
                (int(company_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Policy(
                company_id=int(r["company_id"]),
                shift_start=_time_or(r.get("shift_start_time"), c.DEFAULT_SHIFT_START),
                shift_end=_time_or(r.get("shift_end_time"), c.DEFAULT_SHIFT_END),
                grace_minutes=_int_or(r.get("grace_period_minutes"), c.DEFAULT_GRACE_MINUTES),
                min_working_hours=to_decimal(r.get("min_working_hours"), str(c.DEFAULT_MIN_WORKING_HOURS)),
                max_daily_hours=to_decimal(r.get("max_daily_hours"), str(c.DEFAULT_MAX_DAILY_HOURS)),
                auto_punch_out_buffer_minutes=_int_or(
                    r.get("auto_punch_out_buffer_minutes"), c.DEFAULT_AUTO_PUNCH_OUT_BUFFER_MINUTES
                ),
                office_lat=float(r["location_lat"]) if r.get("location_lat") is not None else None,
                office_lng=float(r["location_lng"]) if r.get("location_lng") is not None else None,
                location_radius_m=_int_or(r.get("location_radius"), c.DEFAULT_LOCATION_RADIUS_M),
                overtime_threshold_hours=to_decimal(
                    r.get("overtime_threshold_hours"), str(c.DEFAULT_OVERTIME_THRESHOLD_HOURS)
                ),
                night_punch_in_window_hours=to_decimal(
                    r.get("night_punch_in_window_hours"), str(c.DEFAULT_NIGHT_PUNCH_IN_WINDOW_HOURS)
                ),
                enable_late_penalty=bool(r.get("enable_late_penalty") or False),
                late_penalty_per_minute=to_decimal(r.get("late_penalty_per_minute")),
                enable_absent_penalty=bool(r.get("enable_absent_penalty") or False),
                absent_penalty_per_day=to_decimal(r.get("absent_penalty_per_day")),
                half_day_threshold_hours=to_decimal(
                    r.get("half_day_threshold_hours"), str(c.DEFAULT_HALF_DAY_THRESHOLD_HOURS)
                ),
                pf_percentage=to_decimal(r.get("pf_percentage"), str(c.DEFAULT_PF_PERCENTAGE)),
                esi_percentage=to_decimal(r.get("esi_percentage"), str(c.DEFAULT_ESI_PERCENTAGE)),
                overtime_multiplier=to_decimal(r.get("overtime_multiplier"), str(c.DEFAULT_OVERTIME_MULTIPLIER)),
                timezone=r.get("timezone") or c.DEFAULT_TIMEZONE,
            )
