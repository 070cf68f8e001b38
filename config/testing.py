from config.config import (  # noqa: F401
    AUTO_PUNCH_OUT_INTERVAL_MINUTES,
    JOB_CHUNK_SIZE,
    JOB_MAX_WORKERS,
    MARK_ABSENT_HOUR,
    SALARY_GENERATION_DAY,
    SCHEDULER_TIMEZONE,
    db_config,
)

SECRET_KEY = "test-secret"

DB_CONFIG = db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
SCHEDULER_ENABLED = False

# No caching so tests see policy edits immediately.
POLICY_CACHE_TTL_SECONDS = 0

CRON_TOKEN = "test-cron-token"
