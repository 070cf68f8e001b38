from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from ..common.datetime_utils import shift_duration_hours, tenant_zone
from ..core import constants as c


@dataclass(frozen=True)
class Policy:
    """Immutable snapshot of one company's attendance and payroll settings."""

    company_id: int
    shift_start: time = time(9, 0)
    shift_end: time = time(18, 0)
    grace_minutes: int = c.DEFAULT_GRACE_MINUTES
    min_working_hours: Decimal = Decimal(c.DEFAULT_MIN_WORKING_HOURS)
    max_daily_hours: Decimal = Decimal(c.DEFAULT_MAX_DAILY_HOURS)
    auto_punch_out_buffer_minutes: int = c.DEFAULT_AUTO_PUNCH_OUT_BUFFER_MINUTES
    office_lat: Optional[float] = None
    office_lng: Optional[float] = None
    location_radius_m: int = c.DEFAULT_LOCATION_RADIUS_M
    overtime_threshold_hours: Decimal = Decimal(c.DEFAULT_OVERTIME_THRESHOLD_HOURS)
    night_punch_in_window_hours: Decimal = Decimal(c.DEFAULT_NIGHT_PUNCH_IN_WINDOW_HOURS)
    enable_late_penalty: bool = False
    late_penalty_per_minute: Decimal = Decimal("0")
    enable_absent_penalty: bool = False
    absent_penalty_per_day: Decimal = Decimal("0")
    half_day_threshold_hours: Decimal = Decimal(c.DEFAULT_HALF_DAY_THRESHOLD_HOURS)
    pf_percentage: Decimal = c.DEFAULT_PF_PERCENTAGE
    esi_percentage: Decimal = c.DEFAULT_ESI_PERCENTAGE
    overtime_multiplier: Decimal = c.DEFAULT_OVERTIME_MULTIPLIER
    timezone: str = c.DEFAULT_TIMEZONE

    @property
    def has_office_location(self) -> bool:
        return self.office_lat is not None and self.office_lng is not None

    @property
    def zone(self) -> ZoneInfo:
        return tenant_zone(self.timezone)

    @property
    def shift_hours(self) -> Decimal:
        return shift_duration_hours(self.shift_start, self.shift_end)

    @property
    def is_overnight_shift(self) -> bool:
        return self.shift_end <= self.shift_start
