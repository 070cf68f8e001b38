"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

# Policy fallbacks used when a company row leaves a column NULL.
DEFAULT_SHIFT_START = "09:00"
DEFAULT_SHIFT_END = "18:00"
DEFAULT_GRACE_MINUTES = 30
DEFAULT_MIN_WORKING_HOURS = 4
DEFAULT_MAX_DAILY_HOURS = 16
DEFAULT_AUTO_PUNCH_OUT_BUFFER_MINUTES = 30
DEFAULT_LOCATION_RADIUS_M = 100
DEFAULT_OVERTIME_THRESHOLD_HOURS = 2
DEFAULT_NIGHT_PUNCH_IN_WINDOW_HOURS = 2
DEFAULT_HALF_DAY_THRESHOLD_HOURS = 4
DEFAULT_PF_PERCENTAGE = Decimal("12")
DEFAULT_ESI_PERCENTAGE = Decimal("0.75")
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")
DEFAULT_TIMEZONE = "Asia/Kolkata"

EARTH_RADIUS_M = 6371000

AUTO_PUNCH_OUT_REASON = "auto punch-out — forgot to punch out"

ATTENDANCE_TRACKED_ROLES = ("STAFF",)
PAYROLL_ROLES = ("STAFF", "MANAGER", "ACCOUNTANT")
SALARY_NOTIFY_ROLES = ("ADMIN", "MANAGER")

DEFAULT_JOB_CHUNK_SIZE = 5
DEFAULT_JOB_MAX_WORKERS = 4
DEFAULT_POLICY_CACHE_TTL_SECONDS = 60
