"""Create the table backing PostgresStateStorage."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from bookingdesk.state.config import ConfigurationError, load_settings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("db_schema.sql")


def _psycopg_connect(database_url: str) -> Any:
    import psycopg

    return psycopg.connect(database_url)


def apply_schema(database_url: str, connect: Callable[[str], Any] | None = None) -> None:
    schema_sql = SCHEMA_PATH.read_text(encoding="utf-8")
    opener = connect if connect is not None else _psycopg_connect

    with opener(database_url) as conn:
        with conn.cursor() as cur:
            cur.execute(schema_sql)
        conn.commit()
    logger.info(f"Applied {SCHEMA_PATH.name}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    if not settings.database_url:
        raise ConfigurationError("BOOKINGDESK_DATABASE_URL is required for migration")
    apply_schema(settings.database_url)


if __name__ == "__main__":
    main()
