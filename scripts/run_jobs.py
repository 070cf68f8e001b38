"""Run one batch job once, outside the scheduler (e.g. from system cron).

    python scripts/run_jobs.py auto-punch-out
    python scripts/run_jobs.py mark-absent
    python scripts/run_jobs.py salary-generate --month 5 --year 2025
"""
from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.container import build_container
from src.attendance_payroll.attendance_payroll.main import configure_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("job", choices=["auto-punch-out", "mark-absent", "salary-generate"])
    parser.add_argument("--month", type=int)
    parser.add_argument("--year", type=int)
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        policy_cache_ttl_seconds=int(getattr(settings, "POLICY_CACHE_TTL_SECONDS", 60)),
        job_chunk_size=int(getattr(settings, "JOB_CHUNK_SIZE", 5)),
        job_max_workers=int(getattr(settings, "JOB_MAX_WORKERS", 4)),
    )

    if args.job == "auto-punch-out":
        result = container.auto_punch_out_job.run()
    elif args.job == "mark-absent":
        result = container.mark_absent_job.run()
    else:
        result = container.salary_generation_job.run(args.month, args.year)

    print(json.dumps(result.to_dict(), indent=2))
    return 1 if result.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
