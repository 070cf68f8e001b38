from datetime import date, time
from decimal import Decimal

import pytest

from src.attendance_payroll.attendance_payroll.attendance.rules import (
    auto_punch_out_deadline,
    compute_hours,
    lateness,
    resolve_attendance_date,
)
from src.attendance_payroll.attendance_payroll.core.exceptions import ValidationError
from tests.fakes import make_policy, utc

NIGHT = {"shift_start": time(22, 0), "shift_end": time(6, 0), "night_punch_in_window_hours": Decimal("2")}


def test_night_punch_after_midnight_belongs_to_previous_day():
    policy = make_policy(timezone="Asia/Kolkata", **NIGHT)
    # 00:20 IST on 11 March
    now = utc(2025, 3, 10, 18, 50)

    resolved = resolve_attendance_date(now, policy)

    assert resolved.attendance_date == date(2025, 3, 10)
    assert resolved.carried_over is True


def test_punch_outside_night_window_belongs_to_today():
    policy = make_policy(timezone="Asia/Kolkata", **NIGHT)
    # 02:30 IST on 11 March
    now = utc(2025, 3, 10, 21, 0)

    resolved = resolve_attendance_date(now, policy)

    assert resolved.attendance_date == date(2025, 3, 11)
    assert resolved.carried_over is False


def test_day_shift_early_punch_is_today():
    policy = make_policy()

    resolved = resolve_attendance_date(utc(2025, 3, 10, 8, 50), policy)

    assert resolved.attendance_date == date(2025, 3, 10)
    assert not resolved.carried_over


def test_lateness_counts_minutes_after_grace():
    policy = make_policy(grace_minutes=30)
    day = date(2025, 3, 10)

    assert lateness(utc(2025, 3, 10, 9, 30), day, policy) == (False, 0)
    assert lateness(utc(2025, 3, 10, 9, 45), day, policy) == (True, 15)


def test_compute_hours_reports_overtime_past_shift_and_threshold():
    policy = make_policy(overtime_threshold_hours=Decimal("2"))

    hours = compute_hours(utc(2025, 3, 10, 8, 0), utc(2025, 3, 10, 20, 0), policy)

    assert hours.working_hours == Decimal("12")
    assert hours.overtime_hours == Decimal("1")
    assert hours.capped is False


def test_compute_hours_caps_at_max_daily_hours():
    policy = make_policy(max_daily_hours=Decimal("16"))

    hours = compute_hours(utc(2025, 3, 10, 6, 0), utc(2025, 3, 11, 0, 0), policy)

    assert hours.working_hours == Decimal("16")
    assert hours.raw_hours == Decimal("18")
    assert hours.capped is True


def test_compute_hours_rejects_out_before_in():
    with pytest.raises(ValidationError):
        compute_hours(utc(2025, 3, 10, 18, 0), utc(2025, 3, 10, 9, 0), make_policy())


def test_auto_punch_out_deadline_day_and_overnight_shift():
    day = date(2025, 3, 10)

    assert auto_punch_out_deadline(day, make_policy(auto_punch_out_buffer_minutes=30)) == utc(2025, 3, 10, 18, 30)
    assert auto_punch_out_deadline(day, make_policy(**NIGHT)) == utc(2025, 3, 11, 6, 30)
