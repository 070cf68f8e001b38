from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Protocol

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = 0


class AuditLog(Protocol):
    """Append-only audit trail."""

    def record(
        self,
        actor_id: int,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        raise NotImplementedError


class MySQLAuditLog(AuditLog):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        actor_id: int,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(actor_id, action, entity_type, entity_id, metadata)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    int(actor_id),
                    action,
                    entity_type,
                    str(entity_id),
                    json.dumps(dict(metadata or {}), default=str),
                ),
            )


def safe_audit(
    audit: AuditLog,
    actor_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Any,
    metadata: Optional[Mapping[str, Any]] = None,
) -> None:
    """Audit failures are logged and swallowed."""
    try:
        audit.record(
            SYSTEM_ACTOR if actor_id is None else int(actor_id),
            action,
            entity_type,
            str(entity_id),
            metadata,
        )
    except Exception:
        logger.exception("audit write failed action=%s %s=%s", action, entity_type, entity_id)
