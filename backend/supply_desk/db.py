from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from .config import Settings


def get_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if not url:
        raise RuntimeError("database_url is required")

    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        # handlers run in the threadpool, so the sqlite connection is shared across threads
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(url, pool_pre_ping=True)