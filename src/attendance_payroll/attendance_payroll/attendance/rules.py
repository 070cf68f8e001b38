"""Pure attendance rules: date resolution, lateness, hours, auto punch-out.

Everything here takes aware UTC instants and a :class:`Policy` snapshot and
works in the tenant's local time zone.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from ..common.datetime_utils import hours_between, local_instant, quantize_hours, to_local
from ..core.exceptions import ValidationError
from ..policy.model import Policy
from .model import WorkedHours


@dataclass(frozen=True)
class ResolvedDate:
    attendance_date: date
    carried_over: bool


def resolve_attendance_date(now: datetime, policy: Policy) -> ResolvedDate:
    """Assign a punch-in to a tenant-local attendance day.

    A punch before today's shift start that falls within the night window
    after local midnight continues yesterday's night shift. Anything else
    belongs to today.
    """
    tz = policy.zone
    local_now = to_local(now, tz)
    today = local_now.date()
    today_start = datetime.combine(today, policy.shift_start, tzinfo=tz)
    midnight = datetime.combine(today, datetime.min.time(), tzinfo=tz)
    window = timedelta(hours=float(policy.night_punch_in_window_hours))

    if local_now < today_start and local_now - midnight < window:
        return ResolvedDate(attendance_date=today - timedelta(days=1), carried_over=True)
    return ResolvedDate(attendance_date=today, carried_over=False)


def shift_start_at(attendance_date: date, policy: Policy) -> datetime:
    return local_instant(attendance_date, policy.shift_start, policy.zone)


def shift_end_at(attendance_date: date, policy: Policy) -> datetime:
    end = local_instant(attendance_date, policy.shift_end, policy.zone)
    if policy.is_overnight_shift:
        end = local_instant(attendance_date + timedelta(days=1), policy.shift_end, policy.zone)
    return end


def lateness(punch_in_at: datetime, attendance_date: date, policy: Policy) -> tuple[bool, int]:
    """(is_late, whole minutes past shift start + grace)."""
    limit = shift_start_at(attendance_date, policy) + timedelta(minutes=int(policy.grace_minutes))
    if punch_in_at <= limit:
        return False, 0
    return True, int((punch_in_at - limit).total_seconds() // 60)


def compute_hours(punch_in_at: datetime, punch_out_at: datetime, policy: Policy) -> WorkedHours:
    """Working hours capped at max daily hours; overtime beyond shift + threshold."""
    if punch_out_at < punch_in_at:
        raise ValidationError("Punch-out cannot be earlier than punch-in")

    raw = quantize_hours(hours_between(punch_in_at, punch_out_at))
    cap = Decimal(policy.max_daily_hours)
    working = min(raw, cap)
    overtime_start = policy.shift_hours + Decimal(policy.overtime_threshold_hours)
    overtime = quantize_hours(max(Decimal("0"), working - overtime_start))
    return WorkedHours(working_hours=working, overtime_hours=overtime, raw_hours=raw, capped=raw > cap)


def auto_punch_out_deadline(attendance_date: date, policy: Policy) -> datetime:
    return shift_end_at(attendance_date, policy) + timedelta(minutes=int(policy.auto_punch_out_buffer_minutes))
