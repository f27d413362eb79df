from __future__ import annotations

from collections.abc import Iterable

from loguru import logger
from sqlalchemy.engine import Engine

# columns added after the first release, with the value existing rows receive
_SQLITE_COMPAT_COLUMNS: dict[str, dict[str, tuple[str, str]]] = {
    "applications": {
        "link": ("TEXT", "''"),
        "status": ("VARCHAR(16)", "'active'"),
        "priority": ("VARCHAR(16)", "'normal'"),
        "updated_at": ("BIGINT", "created_at"),
    },
}


def _existing_columns(conn, table_name: str) -> set[str]:
    rows = conn.exec_driver_sql(f"PRAGMA table_info({table_name})").all()
    return {row[1] for row in rows}


def _add_missing_columns(
    conn,
    table_name: str,
    missing_columns: Iterable[str],
    column_specs: dict[str, tuple[str, str]],
) -> None:
    for column_name in missing_columns:
        column_type, backfill = column_specs[column_name]
        conn.exec_driver_sql(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_type}")
        conn.exec_driver_sql(
            f"UPDATE {table_name} SET {column_name} = {backfill} WHERE {column_name} IS NULL"
        )
        logger.info("Column added", table=table_name, column=column_name)


def run_startup_migrations(engine: Engine, db_url: str) -> None:
    if not db_url.startswith("sqlite"):
        return

    with engine.begin() as conn:
        for table_name, column_specs in _SQLITE_COMPAT_COLUMNS.items():
            existing = _existing_columns(conn, table_name)
            if not existing:
                continue
            missing = [column for column in column_specs if column not in existing]
            if missing:
                _add_missing_columns(conn, table_name, missing, column_specs)
