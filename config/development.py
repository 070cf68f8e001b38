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

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config(default_password="root")

DEBUG = True

# If enabled, the app applies database/schema.sql on startup (CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")

SCHEDULER_ENABLED = env_flag("SCHEDULER_ENABLED", "0")
