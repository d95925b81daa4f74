"""Database engine setup for SQLite with WAL mode.

The DB is stored at ``{data_root}/.flexrunner/flexrunner.db``.

SQLAlchemy Core (not ORM) is used: the data is a handful of string rows
and the process is a short-lived CLI.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from flexrunner.infrastructure.database.schema import metadata

DATA_DIRNAME = ".flexrunner"
DB_FILENAME = "flexrunner.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL journaling."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(data_root: Path) -> Engine:
    """Initialize the database at ``{data_root}/.flexrunner/flexrunner.db``.

    Idempotent — safe to call on an existing data directory.
    """
    data_dir = data_root / DATA_DIRNAME
    data_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(data_dir / DB_FILENAME)
    metadata.create_all(engine)
    return engine
