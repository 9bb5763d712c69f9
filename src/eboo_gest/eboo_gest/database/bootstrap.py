"""Create the database and apply database/schema.sql.

Used by scripts/init_db.py and by create_app() when AUTO_INIT_DB is set.
"""

from __future__ import annotations

import re
from contextlib import closing
from pathlib import Path

import mysql.connector

from ..common.logging_config import get_logger
from ..core.exceptions import PersistenceError
from .connection import DBConfig, DatabaseConnection

logger = get_logger("database.bootstrap")

# The schema file names its own database; the configured one wins.
_DATABASE_DIRECTIVE = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def schema_statements(sql: str) -> list[str]:
    """Split schema.sql into statements.

    Statements end with ';' at the end of a line. Comment lines and the
    CREATE DATABASE / USE directives are dropped.
    """
    statements: list[str] = []
    pending: list[str] = []
    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("--"):
            continue
        pending.append(line)
        if stripped.endswith(";"):
            statement = "\n".join(pending).strip().rstrip(";").strip()
            pending = []
            if not _DATABASE_DIRECTIVE.match(statement):
                statements.append(statement)
    if pending:
        statements.append("\n".join(pending).strip())
    return statements


def ensure_database_exists(config: DBConfig) -> None:
    with closing(DatabaseConnection(config).connect(with_database=False)) as conn:
        with closing(conn.cursor()) as cur:
            cur.execute(
                f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
            )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> int:
    """Apply every statement of the schema file. Returns how many ran."""
    config = DBConfig.from_dict(db_config)
    statements = schema_statements(Path(schema_path).read_text(encoding="utf-8"))
    try:
        ensure_database_exists(config)
        with closing(DatabaseConnection(config).connect()) as conn:
            with closing(conn.cursor()) as cur:
                for statement in statements:
                    cur.execute(statement)
            conn.commit()
    except mysql.connector.Error as e:
        logger.error("Schema bootstrap failed on %s: %s", config.database, e)
        raise PersistenceError("Initialisation de la base impossible") from e

    logger.info("Applied %d schema statements to %s", len(statements), config.database)
    return len(statements)


def list_tables(db_config: dict) -> list[str]:
    with closing(DatabaseConnection(DBConfig.from_dict(db_config)).connect()) as conn:
        with closing(conn.cursor()) as cur:
            cur.execute("SHOW TABLES")
            return sorted(row[0] for row in cur.fetchall())
