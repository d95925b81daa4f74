"""History entries and the undo log.

Each entry records one reversible mutation. Undo pops the newest entry
and applies its exact inverse; there is no redo. The log lives in memory
only and is empty after every restart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import assert_never

from flexrunner.domain.model import LoadModel
from flexrunner.domain.types import Zone


@dataclass(frozen=True)
class AssignEntry:
    """A batch assignment.

    ``prev_zones[i]`` is the zone ``numbers[i]`` held before (None if it was
    unassigned). ``undelivered`` lists ``(index, number)`` pairs removed from
    the delivered list by the assignment, in ascending index order.
    """

    numbers: tuple[str, ...]
    prev_zones: tuple[Zone | None, ...]
    undelivered: tuple[tuple[int, str], ...] = ()


@dataclass(frozen=True)
class RemoveEntry:
    number: str
    zone: Zone


@dataclass(frozen=True)
class DeliverEntry:
    number: str


@dataclass(frozen=True)
class UndeliverEntry:
    number: str
    index: int


HistoryEntry = AssignEntry | RemoveEntry | DeliverEntry | UndeliverEntry


def entry_kind(entry: HistoryEntry) -> str:
    """Short name of an entry, used in results and logs."""
    match entry:
        case AssignEntry():
            return "assign"
        case RemoveEntry():
            return "remove"
        case DeliverEntry():
            return "deliver"
        case UndeliverEntry():
            return "undeliver"
        case _:
            assert_never(entry)


def revert(entry: HistoryEntry, model: LoadModel) -> None:
    """Apply the inverse of *entry* to *model* in place."""
    match entry:
        case AssignEntry(numbers=numbers, prev_zones=prev_zones, undelivered=undelivered):
            for number, prev in zip(numbers, prev_zones, strict=True):
                if prev is None:
                    model.packages.pop(number, None)
                else:
                    model.packages[number] = prev
            for index, number in undelivered:
                if number not in model.delivered:
                    model.delivered.insert(index, number)
        case RemoveEntry(number=number, zone=zone):
            model.packages[number] = zone
        case DeliverEntry(number=number):
            if number in model.delivered:
                model.delivered.remove(number)
        case UndeliverEntry(number=number, index=index):
            if number not in model.delivered:
                model.delivered.insert(index, number)
        case _:
            assert_never(entry)


class HistoryLog:
    """LIFO stack of history entries, bounded only by memory."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def push(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def pop(self) -> HistoryEntry | None:
        """Remove and return the newest entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
