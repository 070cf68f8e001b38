"""Create the database (if missing) and apply database/schema.sql.

    APP_ENV=production python scripts/init_db.py
    python scripts/init_db.py --schema path/to/other.sql --show-tables
"""
from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.database.bootstrap import apply_schema, list_tables
from src.attendance_payroll.attendance_payroll.main import configure_logging


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--schema", type=Path, default=REPO_ROOT / "database" / "schema.sql")
    parser.add_argument("--show-tables", action="store_true")
    args = parser.parse_args(argv)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    statements = apply_schema(db_config, schema_path=args.schema)
    tables = list_tables(db_config)
    print(f"{settings_module}: {statements} statements -> {db_config.get('database')} ({len(tables)} tables)")
    if args.show_tables:
        for name in sorted(tables):
            print(f"  {name}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
