"""Typed payload contracts for the state snapshot handed to the view.

The view never reads the store directly: it renders one of these
payloads, validated here so key regressions fail fast in tests.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class ZoneStatus(BaseModel):
    """One zone as shown on the car layout and in the delivery list."""

    zone: str
    name: str
    css_class: str
    pending: int
    packages: list[str]
    delivered: list[str]


class StatusData(BaseModel):
    """Payload contract for ``StateStore.status``."""

    phase: str
    package_range: int
    range_presets: list[int]
    dark_mode: bool
    selection: list[str]
    packages: dict[str, str]
    delivered: list[str]
    zones: list[ZoneStatus]
    total_pending: int
    total_delivered: int
    unassigned: list[str]
    all_done: bool
    can_undo: bool
    can_start_delivery: bool


class SummaryData(BaseModel):
    """Payload contract for ``StateStore.summary`` (pending packages per zone)."""

    total_pending: int
    zones: list[ZoneStatus]
