from __future__ import annotations

import argparse
import importlib
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.eboo_gest.eboo_gest.common.logging_config import configure_logging, get_logger
from src.eboo_gest.eboo_gest.database.bootstrap import apply_schema, list_tables, schema_statements

logger = get_logger("scripts.init_db")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the Ebo'o Gest database and its tables.")
    parser.add_argument("--env", help="APP_ENV to load (development, testing, production)")
    parser.add_argument("--schema", type=Path, default=REPO_ROOT / "database" / "schema.sql")
    parser.add_argument("--dry-run", action="store_true", help="only list the statements")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv(override=False)
    if args.env:
        os.environ["APP_ENV"] = args.env
    configure_logging("INFO")

    if args.dry_run:
        for statement in schema_statements(args.schema.read_text(encoding="utf-8")):
            logger.info("%s", statement.splitlines()[0])
        return 0

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    count = apply_schema(db_config, schema_path=args.schema)
    tables = list_tables(db_config)
    logger.info(
        "%d statements applied to %s@%s:%s/%s (tables: %s)",
        count,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        ", ".join(tables),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
