"""Schema bootstrap for ``database/schema.sql`` (startup with AUTO_INIT_DB, or scripts/init_db.py)."""
from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

_DATABASE_DIRECTIVES = re.compile(r"(?im)^\s*(?:CREATE\s+DATABASE|USE)\b.*?;[ \t]*$")


@contextmanager
def _server(config: DBConfig, *, with_database: bool = True):
    """A direct, unpooled connection; the database may not exist yet."""
    kwargs = {"host": config.host, "port": config.port, "user": config.user, "password": config.password}
    if with_database:
        kwargs["database"] = config.database
    conn = mysql.connector.connect(use_pure=True, **kwargs)
    try:
        yield conn
    finally:
        conn.close()


def _strip_create_db_and_use(sql: str) -> str:
    # The configured database wins over whatever the script names.
    return _DATABASE_DIRECTIVES.sub("", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ';' outside quoted strings, dropping ``--`` comment lines."""
    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    start = 0
    quote = ""
    i = 0
    while i < len(sql):
        ch = sql[i]
        if ch == "\\":
            i += 2
            continue
        if quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = sql[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    tail = sql[start:].strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_mapping(db_config)
    with _server(config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Create the database if needed and run every statement of the schema file."""
    ensure_database_exists(db_config)
    schema_path = Path(schema_path)
    statements = list(iter_sql_statements(_strip_create_db_and_use(schema_path.read_text(encoding="utf-8"))))

    with _server(DBConfig.from_mapping(db_config)) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    logger.info("applied %s statements=%d", schema_path.name, len(statements))
    return len(statements)


def list_tables(db_config: dict) -> list[str]:
    with _server(DBConfig.from_mapping(db_config)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
