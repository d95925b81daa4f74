"""Persistence gateway — maps the load model onto versioned storage keys.

Four logical fields are stored as strings, each under ``<field>_<version>``
(``packages_v10``, ``delivered_v10``, ``darkMode_v10``,
``packageRange_v10``). A fifth, write-once key ``hasVisited_v10`` marks
that the first run already happened. Keys written by older versions are
left where they are and never migrated.

Read policy:

- A missing key means "use the default".
- A value that is valid JSON but the wrong shape is replaced by the
  default and reported as a warning; the rest of the load continues.
- Invalid JSON, or storage that cannot be read at all, aborts the whole
  load with :class:`LoadError`.

The four writes are independent; a failure part-way through can leave
the fields out of step with each other.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from flexrunner.domain.types import DEFAULT_PACKAGE_RANGE, Zone
from flexrunner.domain.validation import check_delivered, check_packages, parse_range_text
from flexrunner.infrastructure.kvstore import StorageError

if TYPE_CHECKING:
    from flexrunner.domain.model import LoadModel
    from flexrunner.infrastructure.kvstore import KeyValueStore

log = structlog.get_logger(__name__)

DEFAULT_KEY_VERSION = "v10"

PACKAGES_FIELD = "packages"
DELIVERED_FIELD = "delivered"
DARK_MODE_FIELD = "darkMode"
RANGE_FIELD = "packageRange"
VISITED_FIELD = "hasVisited"


class LoadError(Exception):
    """Stored data could not be read; the caller should fall back to defaults."""


@dataclass
class StoredState:
    """Values recovered from storage, already validated."""

    packages: dict[str, Zone] = field(default_factory=dict)
    delivered: list[str] = field(default_factory=list)
    dark_mode: bool = True
    package_range: int = DEFAULT_PACKAGE_RANGE
    first_run: bool = False
    warnings: list[str] = field(default_factory=list)


class PersistenceGateway:
    """Reads and writes the load model through a :class:`KeyValueStore`."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key_version: str = DEFAULT_KEY_VERSION,
        default_range: int = DEFAULT_PACKAGE_RANGE,
    ) -> None:
        self._store = store
        self.key_version = key_version
        self.default_range = default_range

    def key(self, field_name: str) -> str:
        """Versioned storage key for *field_name*."""
        return f"{field_name}_{self.key_version}"

    def _read(self, field_name: str) -> str | None:
        try:
            return self._store.get_item(self.key(field_name))
        except StorageError as exc:
            raise LoadError(f"Storage unavailable: {exc}") from exc

    def _read_json(self, field_name: str) -> object | None:
        raw = self._read(field_name)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise LoadError(f"Corrupted {self.key(field_name)}: {exc}") from exc

    def load(self) -> StoredState:
        """Read all fields.

        Raises:
            LoadError: on invalid JSON or unreadable storage.
        """
        state = StoredState(package_range=self.default_range)

        raw_packages = self._read_json(PACKAGES_FIELD)
        if raw_packages is not None:
            packages = check_packages(raw_packages)
            if packages.ok:
                state.packages = packages.unwrap()
            else:
                log.warning(
                    "invalid_field_reset", key=self.key(PACKAGES_FIELD), reason=packages.error
                )
                state.warnings.append("Invalid packages data, resetting")

        raw_delivered = self._read_json(DELIVERED_FIELD)
        if raw_delivered is not None:
            delivered = check_delivered(raw_delivered)
            if delivered.ok:
                state.delivered = delivered.unwrap()
            else:
                log.warning(
                    "invalid_field_reset", key=self.key(DELIVERED_FIELD), reason=delivered.error
                )
                state.warnings.append("Invalid delivered data, resetting")

        raw_dark = self._read(DARK_MODE_FIELD)
        if raw_dark is not None:
            state.dark_mode = raw_dark != "false"

        raw_range = self._read(RANGE_FIELD)
        if raw_range:
            package_range = parse_range_text(raw_range)
            if package_range.ok:
                state.package_range = package_range.unwrap()
            else:
                log.warning(
                    "invalid_field_reset", key=self.key(RANGE_FIELD), reason=package_range.error
                )
                state.warnings.append("Invalid package range, using default")

        if not self._read(VISITED_FIELD):
            state.first_run = True
            try:
                self._store.set_item(self.key(VISITED_FIELD), "true")
            except StorageError:
                log.warning("visited_flag_not_saved", key=self.key(VISITED_FIELD), exc_info=True)

        return state

    def save(self, model: LoadModel) -> None:
        """Write all four fields.

        Raises:
            StorageQuotaError: if the store is out of space.
            StorageError: on any other write failure.
        """
        packages = {num: zone.value for num, zone in model.packages.items()}
        self._store.set_item(self.key(PACKAGES_FIELD), json.dumps(packages, separators=(",", ":")))
        self._store.set_item(
            self.key(DELIVERED_FIELD), json.dumps(model.delivered, separators=(",", ":"))
        )
        self._store.set_item(self.key(DARK_MODE_FIELD), "true" if model.dark_mode else "false")
        self._store.set_item(self.key(RANGE_FIELD), str(model.package_range))
