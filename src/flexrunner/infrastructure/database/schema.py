"""SQLAlchemy Core table definitions for the flexrunner database.

A single key-value table mirrors the flat string storage the data was
first kept in: each logical field is one row keyed by a versioned name.
"""

from __future__ import annotations

from sqlalchemy import Column, MetaData, Table, Text

metadata = MetaData()

kv_entries = Table(
    "kv_entries",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
    Column("updated", Text, nullable=False),  # ISO timestamp of last write
)
