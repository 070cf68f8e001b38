from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Mapping, Optional

from mysql.connector import pooling

POOL_NAME = "attendance_payroll"


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 10

    @classmethod
    def from_mapping(cls, values: Mapping, *, pool_size: Optional[int] = None) -> "DBConfig":
        return cls(
            host=str(values.get("host", "localhost")),
            port=int(values.get("port", 3306)),
            user=str(values.get("user", "root")),
            password=str(values.get("password", "")),
            database=str(values.get("database", "attendance_payroll")),
            pool_size=int(pool_size or values.get("pool_size", 10)),
        )


class DatabaseConnection:
    """Pooled connection factory shared by every repository.

    A unit of work borrows one connection; ``close()`` hands it back. Sessions
    run in UTC so DATETIME columns always hold UTC instants.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None
        self._lock = threading.Lock()

    @property
    def config(self) -> DBConfig:
        return self._config

    def _get_pool(self) -> pooling.MySQLConnectionPool:
        with self._lock:
            if self._pool is None:
                self._pool = pooling.MySQLConnectionPool(
                    pool_name=POOL_NAME,
                    # mysql-connector caps a pool at 32 connections.
                    pool_size=max(1, min(32, self._config.pool_size)),
                    host=self._config.host,
                    port=int(self._config.port),
                    user=self._config.user,
                    password=self._config.password,
                    database=self._config.database,
                    time_zone="+00:00",
                )
            return self._pool

    def connect(self):
        return self._get_pool().get_connection()
