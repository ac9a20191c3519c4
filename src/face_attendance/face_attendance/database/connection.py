from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "face_attendance"
    connection_timeout: int = 10

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DBConfig":
        """Build from a settings dict such as ``config.development.DB_CONFIG``."""
        defaults = cls()
        return cls(
            host=str(values.get("host", defaults.host)),
            port=int(values.get("port", defaults.port)),
            user=str(values.get("user", defaults.user)),
            password=str(values.get("password", defaults.password)),
            database=str(values.get("database", defaults.database)),
            connection_timeout=int(values.get("connection_timeout", defaults.connection_timeout)),
        )

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Process-wide factory for short-lived MySQL connections.

    Every session is pinned to UTC so DATETIME columns round-trip unchanged.
    """

    _instance: Optional["DatabaseConnection"] = None
    _instance_lock = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(config)
            return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self, *, with_database: bool = True):
        cfg = self._config
        kwargs: dict[str, Any] = dict(
            host=cfg.host,
            port=cfg.port,
            user=cfg.user,
            password=cfg.password,
            connection_timeout=cfg.connection_timeout,
            time_zone="+00:00",
        )
        if with_database:
            kwargs["database"] = cfg.database
        return mysql.connector.connect(**kwargs)
