from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from ..common.logging_config import get_logger
from ..core.exceptions import PersistenceError
from .connection import DatabaseConnection

logger = get_logger("database")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor) for one unit of work.

    Commits on success, rolls back on any error. Driver errors are re-raised as
    PersistenceError so services never depend on mysql-connector types.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("Database connection failed: %s", e)
        raise PersistenceError("Base de données indisponible") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        logger.error("Database operation failed: %s", e)
        raise PersistenceError("Erreur d'accès aux données") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, default=str)


def load_json(value: Any) -> Any:
    """JSON columns come back as str or bytes depending on connector settings."""

    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
