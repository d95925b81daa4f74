"""BaseService — foundation for services that operate on a live StateStore.

Every service receives the :class:`StateStore` at construction time; the
store owns the model, the undo history, and persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flexrunner.services.store import StateStore


class BaseService:
    """Base for service-layer classes built on top of the state store.

    Usage::

        class BackupService(BaseService):
            def export_data(self) -> ServiceResult:
                model = self._store.model
                ...
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store
