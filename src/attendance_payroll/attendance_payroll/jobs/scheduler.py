"""In-process cron for the batch jobs. Runs never overlap; missed ticks coalesce."""
from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

MISFIRE_GRACE_SECONDS = 3600


def build_scheduler(
    container,
    *,
    auto_punch_out_interval_minutes: int = 10,
    mark_absent_hour: int = 2,
    salary_generation_day: int = 1,
    timezone: str = "UTC",
) -> BackgroundScheduler:
    scheduler = BackgroundScheduler(timezone=timezone)

    scheduler.add_job(
        container.auto_punch_out_job.run,
        "interval",
        minutes=max(1, int(auto_punch_out_interval_minutes)),
        id="attendance_auto_punch_out",
        name="Auto punch-out",
        coalesce=True,
        max_instances=1,
        misfire_grace_time=MISFIRE_GRACE_SECONDS,
    )
    scheduler.add_job(
        container.mark_absent_job.run,
        "cron",
        hour=int(mark_absent_hour),
        minute=0,
        id="attendance_mark_absent",
        name="Mark absent",
        coalesce=True,
        max_instances=1,
        misfire_grace_time=MISFIRE_GRACE_SECONDS,
    )
    scheduler.add_job(
        container.salary_generation_job.run,
        "cron",
        day=int(salary_generation_day),
        hour=(int(mark_absent_hour) + 1) % 24,
        minute=0,
        id="payroll_salary_generation",
        name="Monthly salary generation",
        coalesce=True,
        max_instances=1,
        misfire_grace_time=MISFIRE_GRACE_SECONDS,
    )
    return scheduler


def start_scheduler(container, settings) -> Optional[BackgroundScheduler]:
    if not bool(getattr(settings, "SCHEDULER_ENABLED", False)):
        logger.info("scheduler disabled (SCHEDULER_ENABLED is off)")
        return None

    scheduler = build_scheduler(
        container,
        auto_punch_out_interval_minutes=int(getattr(settings, "AUTO_PUNCH_OUT_INTERVAL_MINUTES", 10)),
        mark_absent_hour=int(getattr(settings, "MARK_ABSENT_HOUR", 2)),
        salary_generation_day=int(getattr(settings, "SALARY_GENERATION_DAY", 1)),
        timezone=str(getattr(settings, "SCHEDULER_TIMEZONE", "UTC")),
    )
    scheduler.start()
    logger.info("scheduler started jobs=%s", [job.id for job in scheduler.get_jobs()])
    return scheduler
