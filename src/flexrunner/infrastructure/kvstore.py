"""Durable string key-value storage.

Two implementations share the :class:`KeyValueStore` protocol:

- :class:`SqliteKeyValueStore` — one row per key in the ``kv_entries``
  table.
- :class:`MemoryKeyValueStore` — a dict, for tests and ``--ephemeral``.

Both honor an optional byte quota over all keys and values. Writes that
would exceed it raise :class:`StorageQuotaError` and leave the stored
value unchanged.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from flexrunner.infrastructure.database.schema import kv_entries

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Durable storage could not be read or written."""


class StorageQuotaError(StorageError):
    """A write would exceed the storage quota (or the disk is full)."""


class KeyValueStore(Protocol):
    """Flat string-to-string storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


def entry_size(key: str, value: str) -> int:
    """Bytes charged against the quota for one entry."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def _check_quota(
    quota_bytes: int | None,
    others: Iterable[tuple[str, str]],
    key: str,
    value: str,
) -> None:
    if quota_bytes is None:
        return
    used = sum(entry_size(k, v) for k, v in others if k != key)
    needed = used + entry_size(key, value)
    if needed > quota_bytes:
        msg = f"Writing {key!r} needs {needed} bytes; quota is {quota_bytes}"
        raise StorageQuotaError(msg)


class MemoryKeyValueStore:
    """In-process store; contents vanish with the process."""

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        *,
        quota_bytes: int | None = None,
    ) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self.quota_bytes, self._data.items(), key, value)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqliteKeyValueStore:
    """Key-value store backed by the ``kv_entries`` SQLite table."""

    def __init__(self, engine: Engine, *, quota_bytes: int | None = None) -> None:
        self._engine = engine
        self.quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(kv_entries.c.value).where(kv_entries.c.key == key)
                ).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {key!r}: {exc}") from exc
        return None if row is None else str(row.value)

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(UTC).isoformat()
        stmt = sqlite_insert(kv_entries).values(key=key, value=value, updated=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[kv_entries.c.key],
            set_={"value": value, "updated": now},
        )
        try:
            with self._engine.begin() as conn:
                if self.quota_bytes is not None:
                    rows = conn.execute(select(kv_entries.c.key, kv_entries.c.value)).all()
                    _check_quota(self.quota_bytes, ((r.key, r.value) for r in rows), key, value)
                conn.execute(stmt)
        except OperationalError as exc:
            if "full" in str(exc.orig).lower():
                raise StorageQuotaError(f"Storage full while writing {key!r}") from exc
            raise StorageError(f"Failed to write {key!r}: {exc}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {key!r}: {exc}") from exc
        logger.debug("Stored %s (%d bytes)", key, entry_size(key, value))

    def remove_item(self, key: str) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(kv_entries).where(kv_entries.c.key == key))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to remove {key!r}: {exc}") from exc

    def keys(self) -> list[str]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(select(kv_entries.c.key).order_by(kv_entries.c.key)).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list keys: {exc}") from exc
        return [str(r.key) for r in rows]

    def close(self) -> None:
        self._engine.dispose()
