"""SQLite database engine and schema via SQLAlchemy Core."""

from flexrunner.infrastructure.database.engine import create_db_engine, init_database
from flexrunner.infrastructure.database.schema import kv_entries, metadata

__all__ = [
    "create_db_engine",
    "init_database",
    "kv_entries",
    "metadata",
]
