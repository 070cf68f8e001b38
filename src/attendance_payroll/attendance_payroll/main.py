from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import build_container
from .core.exceptions import DomainError
from .core.result import Outcome
from .database.bootstrap import apply_schema, list_tables
from .jobs.controller import outcome_response
from .jobs.controller import register as register_jobs
from .jobs.scheduler import start_scheduler

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return outcome_response(Outcome.failure(exc.kind, str(exc)))


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["CRON_TOKEN"] = getattr(settings, "CRON_TOKEN", "")

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema ready tables=%d", len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        policy_cache_ttl_seconds=int(getattr(settings, "POLICY_CACHE_TTL_SECONDS", 60)),
        job_chunk_size=int(getattr(settings, "JOB_CHUNK_SIZE", 5)),
        job_max_workers=int(getattr(settings, "JOB_MAX_WORKERS", 4)),
    )
    app.extensions["attendance_payroll"] = container

    register_error_handlers(app)
    register_jobs(app, container)

    scheduler = start_scheduler(container, settings)
    if scheduler is not None:
        app.extensions["scheduler"] = scheduler

    return app
