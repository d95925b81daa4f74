"""StateStore — the single source of truth for the load model.

Every intent from the view goes through a method here. Each method
validates first, then mutates, records a history entry where the change
is undoable, and flushes to storage. Validation failures return an error
result and leave the model untouched. A failed flush never undoes the
change: it is reported as a warning on an otherwise successful result.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from flexrunner.domain.history import (
    AssignEntry,
    DeliverEntry,
    HistoryLog,
    RemoveEntry,
    UndeliverEntry,
    entry_kind,
    revert,
)
from flexrunner.domain.model import LoadModel
from flexrunner.domain.types import (
    DEFAULT_PACKAGE_RANGE,
    MAX_PACKAGE_RANGE,
    MIN_PACKAGE_RANGE,
    FeedbackStyle,
    Phase,
    Zone,
)
from flexrunner.domain.validation import check_package_number, check_zone
from flexrunner.domain.zones import ZONES, ZoneInfo, zone_info
from flexrunner.infrastructure.kvstore import StorageError, StorageQuotaError
from flexrunner.infrastructure.persistence import LoadError
from flexrunner.services.contracts import StatusData, SummaryData, dump_validated
from flexrunner.services.result import ErrorCode, ServiceResult, failure

if TYPE_CHECKING:
    from flexrunner.infrastructure.persistence import PersistenceGateway
    from flexrunner.plugins.event_bus import EventBus

log = structlog.get_logger(__name__)

QUOTA_MESSAGE = "Storage quota exceeded. Some data may not be saved."
SAVE_MESSAGE = "Error saving data"
LOAD_MESSAGE = "Error loading saved data. Starting fresh."

DEFAULT_RANGE_PRESETS = (20, 35, 50)


class StateStore:
    """Owns the load model, its undo history, and its persistence.

    Attributes:
        model: The mutable model. Read it through :meth:`status` where
            possible; mutate it only through the methods below.
        history: Undo log (memory only).
        first_run: True when the last :meth:`load` was the first ever.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        events: EventBus | None = None,
        zones: tuple[ZoneInfo, ...] = ZONES,
        range_presets: Iterable[int] = DEFAULT_RANGE_PRESETS,
        default_range: int = DEFAULT_PACKAGE_RANGE,
        max_range: int = MAX_PACKAGE_RANGE,
    ) -> None:
        self._gateway = gateway
        self._events = events
        self.zones = zones
        self.range_presets = tuple(range_presets)
        self.default_range = default_range
        self.max_range = max_range
        self.model = LoadModel(package_range=default_range)
        self.history = HistoryLog()
        self.first_run = False

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> ServiceResult:
        """Replace the model with what storage holds.

        Wrong-shaped fields fall back to their defaults and show up as
        warnings. Unreadable storage or invalid JSON resets the model to
        defaults and returns ``LOAD_FAILED``; the store stays usable.
        """
        op = "load"
        try:
            stored = self._gateway.load()
        except LoadError as exc:
            log.error("load_failed", error=str(exc))
            self.model = LoadModel(package_range=self.default_range)
            self.history.clear()
            return failure(op, ErrorCode.LOAD_FAILED, LOAD_MESSAGE, reason=str(exc))

        self.model = LoadModel(
            packages=stored.packages,
            delivered=stored.delivered,
            package_range=stored.package_range,
            dark_mode=stored.dark_mode,
        )
        self.history.clear()
        self.first_run = stored.first_run
        log.debug("loaded", packages=len(stored.packages), delivered=len(stored.delivered))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "first_run": stored.first_run,
                "package_count": len(stored.packages),
                "delivered_count": len(stored.delivered),
                "package_range": stored.package_range,
            },
            warnings=stored.warnings,
        )

    def save(self) -> ServiceResult:
        """Write the model to storage, classifying any failure."""
        op = "save"
        try:
            self._gateway.save(self.model)
        except StorageQuotaError as exc:
            log.error("save_failed", kind="quota", error=str(exc))
            return failure(op, ErrorCode.SAVE_QUOTA_EXCEEDED, QUOTA_MESSAGE, reason=str(exc))
        except StorageError as exc:
            log.error("save_failed", kind="other", error=str(exc))
            return failure(op, ErrorCode.SAVE_FAILED, SAVE_MESSAGE, reason=str(exc))
        return ServiceResult(ok=True, op=op)

    def _commit(
        self,
        op: str,
        data: dict[str, Any],
        *,
        feedback: FeedbackStyle = FeedbackStyle.LIGHT,
        persist: bool = True,
    ) -> ServiceResult:
        """Flush, notify plugins, and build the success result for *op*."""
        warnings: list[str] = []
        if persist:
            saved = self.save()
            if not saved.ok and saved.error is not None:
                warnings.append(saved.error.message)
        if self._events is not None:
            self._events.post_action(op, data)
            self._events.feedback(feedback)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    def _reject(self, op: str, code: ErrorCode, message: str, **detail: Any) -> ServiceResult:
        if self._events is not None:
            self._events.feedback(FeedbackStyle.ERROR)
        return failure(op, code, message, **detail)

    def _require_phase(self, op: str, phase: Phase) -> ServiceResult | None:
        if self.model.phase is phase:
            return None
        return self._reject(
            op,
            ErrorCode.INVALID_PHASE,
            f"Only available while {phase.value}",
            phase=self.model.phase.value,
        )

    def _parse_number(self, op: str, value: object, limit: int) -> str | ServiceResult:
        checked = check_package_number(value, limit)
        if not checked.ok:
            return self._reject(op, ErrorCode.VALIDATION_ERROR, str(checked.error), value=value)
        return checked.unwrap()

    # ------------------------------------------------------------------
    # Selection (assign phase only, never persisted)
    # ------------------------------------------------------------------

    def select(self, numbers: Iterable[object]) -> ServiceResult:
        """Add numbers to the selection, as the quick-entry pad does.

        Rejects numbers outside the range, numbers already loaded into a
        zone, and numbers already selected. All or nothing.
        """
        op = "select"
        if (bad := self._require_phase(op, Phase.ASSIGNING)) is not None:
            return bad
        added: list[str] = []
        for value in numbers:
            number = self._parse_number(op, value, self.model.package_range)
            if isinstance(number, ServiceResult):
                return number
            if number in self.model.packages:
                return self._reject(op, ErrorCode.VALIDATION_ERROR, f"#{number} already loaded")
            if number in self.model.selection or number in added:
                return self._reject(op, ErrorCode.VALIDATION_ERROR, f"#{number} already added")
            added.append(number)
        self.model.selection.extend(added)
        return self._commit(
            op,
            {"added": added, "selection": list(self.model.selection)},
            feedback=FeedbackStyle.SUCCESS,
            persist=False,
        )

    def toggle_selection(self, value: object) -> ServiceResult:
        """Select an unselected number or deselect a selected one (grid tap)."""
        op = "toggle_selection"
        if (bad := self._require_phase(op, Phase.ASSIGNING)) is not None:
            return bad
        number = self._parse_number(op, value, self.model.package_range)
        if isinstance(number, ServiceResult):
            return number
        if number in self.model.selection:
            self.model.selection.remove(number)
            selected = False
        else:
            self.model.selection.append(number)
            selected = True
        return self._commit(
            op,
            {"number": number, "selected": selected, "selection": list(self.model.selection)},
            persist=False,
        )

    def deselect(self, value: object) -> ServiceResult:
        op = "deselect"
        number = self._parse_number(op, value, self.max_range)
        if isinstance(number, ServiceResult):
            return number
        removed = number in self.model.selection
        if removed:
            self.model.selection.remove(number)
        return self._commit(
            op,
            {"number": number, "removed": removed, "selection": list(self.model.selection)},
            persist=False,
        )

    def clear_selection(self) -> ServiceResult:
        cleared = len(self.model.selection)
        self.model.selection.clear()
        return self._commit("clear_selection", {"cleared": cleared}, persist=False)

    # ------------------------------------------------------------------
    # Undoable mutations
    # ------------------------------------------------------------------

    def assign(self, zone: Zone | str, numbers: Iterable[object] | None = None) -> ServiceResult:
        """Load *numbers* (default: the selection) into *zone* as one batch.

        Each number's previous zone is recorded so a single undo restores
        the whole batch. Assigning a delivered package marks it undelivered.
        The selection is cleared afterwards.
        """
        op = "assign"
        if (bad := self._require_phase(op, Phase.ASSIGNING)) is not None:
            return bad
        checked_zone = check_zone(zone)
        if not checked_zone.ok:
            return self._reject(op, ErrorCode.VALIDATION_ERROR, str(checked_zone.error))
        target = checked_zone.unwrap()

        raw = list(self.model.selection) if numbers is None else list(numbers)
        batch: list[str] = []
        for value in raw:
            number = self._parse_number(op, value, self.model.package_range)
            if isinstance(number, ServiceResult):
                return number
            if number not in batch:
                batch.append(number)
        if not batch:
            return self._reject(op, ErrorCode.EMPTY_SELECTION, "No packages selected")

        model = self.model
        undelivered = tuple(
            (index, number) for index, number in enumerate(model.delivered) if number in batch
        )
        self.history.push(
            AssignEntry(
                numbers=tuple(batch),
                prev_zones=tuple(model.packages.get(number) for number in batch),
                undelivered=undelivered,
            )
        )
        for number in batch:
            model.packages[number] = target
        if undelivered:
            model.delivered = [number for number in model.delivered if number not in batch]
        model.selection.clear()

        info = zone_info(target, self.zones)
        log.debug("assigned", numbers=batch, zone=target.value)
        return self._commit(
            op,
            {"numbers": batch, "zone": target.value, "zone_name": info.name, "count": len(batch)},
            feedback=FeedbackStyle.SUCCESS,
        )

    def remove(self, value: object) -> ServiceResult:
        """Unassign one package. Its delivered flag, if any, is left alone."""
        op = "remove"
        number = self._parse_number(op, value, self.max_range)
        if isinstance(number, ServiceResult):
            return number
        zone = self.model.packages.get(number)
        if zone is None:
            return self._reject(op, ErrorCode.NOT_ASSIGNED, f"#{number} is not loaded")
        self.history.push(RemoveEntry(number=number, zone=zone))
        del self.model.packages[number]
        return self._commit(
            op, {"number": number, "zone": zone.value}, feedback=FeedbackStyle.MEDIUM
        )

    def set_delivered(self, value: object, delivered: bool) -> ServiceResult:
        """Mark a package delivered or undelivered (delivery phase only).

        Setting the state a package already has is a successful no-op and
        records nothing.
        """
        op = "deliver" if delivered else "undeliver"
        if (bad := self._require_phase(op, Phase.DELIVERING)) is not None:
            return bad
        number = self._parse_number(op, value, self.max_range)
        if isinstance(number, ServiceResult):
            return number
        model = self.model
        is_delivered = number in model.delivered

        if delivered and number not in model.packages and not is_delivered:
            return self._reject(op, ErrorCode.NOT_ASSIGNED, f"#{number} is not loaded")
        if delivered == is_delivered:
            return self._commit(
                op, {"number": number, "delivered": delivered, "changed": False}, persist=False
            )

        if delivered:
            self.history.push(DeliverEntry(number=number))
            model.delivered.append(number)
        else:
            self.history.push(UndeliverEntry(number=number, index=model.delivered.index(number)))
            model.delivered.remove(number)
        return self._commit(
            op,
            {
                "number": number,
                "delivered": delivered,
                "changed": True,
                "remaining": model.total_pending(),
            },
            feedback=FeedbackStyle.SUCCESS,
        )

    def toggle_delivered(self, value: object) -> ServiceResult:
        """Flip the delivered flag of a package (delivery chip tap)."""
        checked = check_package_number(value, self.max_range)
        number = checked.value if checked.ok else value
        return self.set_delivered(value, number not in self.model.delivered)

    def undo(self) -> ServiceResult:
        """Revert the newest history entry. No-op when the history is empty."""
        op = "undo"
        entry = self.history.pop()
        if entry is None:
            return ServiceResult(ok=True, op=op, data={"undone": None})
        revert(entry, self.model)
        log.debug("undone", kind=entry_kind(entry))
        return self._commit(
            op,
            {"undone": entry_kind(entry), "remaining_history": len(self.history)},
            feedback=FeedbackStyle.MEDIUM,
        )

    # ------------------------------------------------------------------
    # Non-undoable mutations
    # ------------------------------------------------------------------

    def reset(self) -> ServiceResult:
        """Clear packages, delivered, selection, and history together."""
        model = self.model
        cleared = len(model.packages)
        model.packages = {}
        model.delivered = []
        model.selection = []
        self.history.clear()
        return self._commit("reset", {"cleared": cleared}, feedback=FeedbackStyle.MEDIUM)

    def reset_progress(self) -> ServiceResult:
        """Mark every package undelivered."""
        cleared = len(self.model.delivered)
        self.model.delivered = []
        return self._commit("reset_progress", {"cleared": cleared}, feedback=FeedbackStyle.MEDIUM)

    def set_range(self, value: object) -> ServiceResult:
        """Change the package range; selected numbers above it are dropped."""
        op = "set_range"
        if isinstance(value, bool) or not isinstance(value, int | str):
            return self._reject(op, ErrorCode.VALIDATION_ERROR, "Range must be an integer")
        try:
            new_range = int(value)
        except ValueError:
            return self._reject(op, ErrorCode.VALIDATION_ERROR, "Range must be an integer")
        if not MIN_PACKAGE_RANGE <= new_range <= self.max_range:
            return self._reject(
                op,
                ErrorCode.VALIDATION_ERROR,
                f"Range must be {MIN_PACKAGE_RANGE}-{self.max_range}",
                value=new_range,
            )
        self.model.package_range = new_range
        dropped = [num for num in self.model.selection if int(num) > new_range]
        self.model.selection = [num for num in self.model.selection if int(num) <= new_range]
        return self._commit(op, {"package_range": new_range, "dropped_selection": dropped})

    def toggle_dark_mode(self) -> ServiceResult:
        self.model.dark_mode = not self.model.dark_mode
        return self._commit("toggle_dark_mode", {"dark_mode": self.model.dark_mode})

    def replace_data(
        self,
        *,
        packages: dict[str, Zone] | None = None,
        delivered: list[str] | None = None,
        package_range: int | None = None,
    ) -> ServiceResult:
        """Overwrite whichever fields are given, then flush (used by import)."""
        if packages is not None:
            self.model.packages = dict(packages)
        if delivered is not None:
            self.model.delivered = list(delivered)
        if package_range is not None:
            self.model.package_range = package_range
        return self._commit(
            "replace_data",
            {"package_count": len(self.model.packages)},
            feedback=FeedbackStyle.SUCCESS,
        )

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    def start_delivery(self, *, require_pending: bool = True) -> ServiceResult:
        """Switch to the delivery phase.

        Needs at least one pending package, or with ``require_pending=False``
        at least one loaded package (so a finished route can still be
        un-delivered).
        """
        op = "start_delivery"
        model = self.model
        available = model.total_pending() if require_pending else len(model.packages)
        if available == 0:
            return self._reject(op, ErrorCode.VALIDATION_ERROR, "No packages loaded")
        self.model.selection.clear()
        self.model.phase = Phase.DELIVERING
        return self._commit(
            op,
            {"phase": self.model.phase.value, "pending": self.model.total_pending()},
            feedback=FeedbackStyle.SUCCESS,
            persist=False,
        )

    def back_to_assign(self) -> ServiceResult:
        self.model.phase = Phase.ASSIGNING
        return self._commit("back_to_assign", {"phase": self.model.phase.value}, persist=False)

    # ------------------------------------------------------------------
    # Snapshots for the view
    # ------------------------------------------------------------------

    def _zone_rows(self, *, include_delivered: bool) -> list[dict[str, Any]]:
        model = self.model
        rows = []
        for info in self.zones:
            numbers = model.zone_packages(info.zone, include_delivered=include_delivered)
            rows.append(
                {
                    "zone": info.zone.value,
                    "name": info.name,
                    "css_class": info.css_class,
                    "pending": model.zone_count(info.zone),
                    "packages": numbers,
                    "delivered": [num for num in numbers if num in model.delivered],
                }
            )
        return rows

    def status(self) -> ServiceResult:
        """Full snapshot of the state for rendering."""
        model = self.model
        data = {
            "phase": model.phase.value,
            "package_range": model.package_range,
            "range_presets": list(self.range_presets),
            "dark_mode": model.dark_mode,
            "selection": list(model.selection),
            "packages": {num: zone.value for num, zone in model.packages.items()},
            "delivered": list(model.delivered),
            "zones": self._zone_rows(include_delivered=True),
            "total_pending": model.total_pending(),
            "total_delivered": len(model.delivered),
            "unassigned": model.unassigned_numbers(),
            "all_done": model.all_done(),
            "can_undo": bool(self.history),
            "can_start_delivery": model.total_pending() > 0,
        }
        return ServiceResult(ok=True, op="status", data=dump_validated(StatusData, data))

    def summary(self) -> ServiceResult:
        """Pending packages grouped by zone (the load summary)."""
        data = {
            "total_pending": self.model.total_pending(),
            "zones": self._zone_rows(include_delivered=False),
        }
        return ServiceResult(ok=True, op="summary", data=dump_validated(SummaryData, data))

