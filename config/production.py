import os

from config.config import (  # noqa: F401
    AUTO_PUNCH_OUT_INTERVAL_MINUTES,
    CRON_TOKEN,
    JOB_CHUNK_SIZE,
    JOB_MAX_WORKERS,
    LOG_LEVEL,
    MARK_ABSENT_HOUR,
    POLICY_CACHE_TTL_SECONDS,
    SALARY_GENERATION_DAY,
    SCHEDULER_TIMEZONE,
    db_config,
    env_flag,
)

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()

DEBUG = False

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")

SCHEDULER_ENABLED = env_flag("SCHEDULER_ENABLED", "1")
