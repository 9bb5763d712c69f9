from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host") or "localhost"),
            port=int(db_config.get("port") or 3306),
            user=str(db_config.get("user") or "root"),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or "eboo_gest"),
            connect_timeout=int(db_config.get("connect_timeout") or 10),
        )


class DatabaseConnection:
    """Opens one short-lived MySQL connection per unit of work.

    The kiosk and the back office share a process, so nothing is pooled here.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self, *, with_database: bool = True):
        params = {
            "host": self._config.host,
            "port": self._config.port,
            "user": self._config.user,
            "password": self._config.password,
            "connection_timeout": self._config.connect_timeout,
            "charset": "utf8mb4",
            "use_pure": True,
        }
        if with_database:
            params["database"] = self._config.database
        return mysql.connector.connect(**params)
