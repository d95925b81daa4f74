"""Static zone table: id, display name, and display class."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from flexrunner.domain.types import Zone


@dataclass(frozen=True)
class ZoneInfo:
    """Display metadata for one zone."""

    zone: Zone
    name: str
    css_class: str


ZONES: tuple[ZoneInfo, ...] = (
    ZoneInfo(Zone.PASSENGER, "Passenger Seat", "passenger"),
    ZoneInfo(Zone.BACK_LEFT, "Back Left", "backleft"),
    ZoneInfo(Zone.BACK_MIDDLE, "Back Middle", "backmid"),
    ZoneInfo(Zone.BACK_RIGHT, "Back Right", "backright"),
    ZoneInfo(Zone.TRUNK, "Trunk", "trunk"),
)


def build_zone_table(labels: Mapping[str, str] | None = None) -> tuple[ZoneInfo, ...]:
    """Return the zone table with optional display-name overrides.

    Unknown ids in *labels* are ignored; the five zones are fixed.
    """
    if not labels:
        return ZONES
    return tuple(
        ZoneInfo(info.zone, labels.get(info.zone.value, info.name), info.css_class)
        for info in ZONES
    )


def zone_info(zone: Zone, table: tuple[ZoneInfo, ...] = ZONES) -> ZoneInfo:
    """Look up display metadata for *zone*."""
    for info in table:
        if info.zone is zone:
            return info
    msg = f"Unknown zone: {zone!r}"
    raise ValueError(msg)
