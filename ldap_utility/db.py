from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .env_settings import get_env

log = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def sqlite_url(sqlite_path: str) -> str:
    """``SQLITE_PATH`` -> SQLAlchemy URL. Relative paths resolve against the CWD."""
    p = Path((sqlite_path or "").strip() or "data/app.db")
    if not p.is_absolute():
        p = (Path.cwd() / p).resolve()
    os.makedirs(p.parent, exist_ok=True)
    return f"sqlite:///{p.as_posix()}"


def _apply_pragmas(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
    except sqlite3.OperationalError as exc:
        # Some bind-mounted filesystems refuse WAL.
        log.warning("SQLite WAL unavailable (%s), using DELETE journal", exc)
        cursor.execute("PRAGMA journal_mode=DELETE")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def make_engine(url: str, **kwargs: Any) -> Engine:
    """SQLite engine shared across threads, with the journal pragmas applied."""
    connect_args = {"check_same_thread": False, **kwargs.pop("connect_args", {})}
    engine = create_engine(url, connect_args=connect_args, **kwargs)
    event.listen(engine, "connect", _apply_pragmas)
    return engine


engine = make_engine(sqlite_url(get_env().sqlite_path))

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
