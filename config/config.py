"""Settings shared by every environment; each value can be overridden from the environment."""

import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def db_config(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "attendance_payroll"),
        "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Seconds a company's policy snapshot may be served from memory.
POLICY_CACHE_TTL_SECONDS = int(os.getenv("POLICY_CACHE_TTL_SECONDS", "60"))

# Batch jobs
AUTO_PUNCH_OUT_INTERVAL_MINUTES = int(os.getenv("AUTO_PUNCH_OUT_INTERVAL_MINUTES", "10"))
MARK_ABSENT_HOUR = int(os.getenv("MARK_ABSENT_HOUR", "2"))
SALARY_GENERATION_DAY = int(os.getenv("SALARY_GENERATION_DAY", "1"))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "UTC")
JOB_CHUNK_SIZE = int(os.getenv("JOB_CHUNK_SIZE", "5"))
JOB_MAX_WORKERS = int(os.getenv("JOB_MAX_WORKERS", "4"))

# Shared secret for POST /api/cron/*; empty disables the endpoints.
CRON_TOKEN = os.getenv("CRON_TOKEN", "")
