"""The in-memory load model and its derived read-only views.

``LoadModel`` is plain data. Mutations with invariants and history live
in :class:`flexrunner.services.store.StateStore`; this module only
answers questions about a model.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flexrunner.domain.types import DEFAULT_PACKAGE_RANGE, Phase, Zone


def sort_numbers(numbers: list[str] | set[str]) -> list[str]:
    """Sort package numbers numerically."""
    return sorted(numbers, key=int)


@dataclass
class LoadModel:
    """Packages, delivery status, selection, and settings for one route.

    Attributes:
        packages: Assignment map, package number -> zone.
        delivered: Delivered set, kept as an ordered list without duplicates.
        selection: Numbers chosen for the next assignment (never persisted).
        package_range: Inclusive upper bound on valid package numbers.
        dark_mode: Display preference persisted alongside the data.
        phase: Current top-level mode.
    """

    packages: dict[str, Zone] = field(default_factory=dict)
    delivered: list[str] = field(default_factory=list)
    selection: list[str] = field(default_factory=list)
    package_range: int = DEFAULT_PACKAGE_RANGE
    dark_mode: bool = True
    phase: Phase = Phase.ASSIGNING

    def is_delivered(self, number: str) -> bool:
        return number in self.delivered

    def zone_count(self, zone: Zone) -> int:
        """Pending (assigned, not delivered) packages in *zone*."""
        return sum(
            1 for num, z in self.packages.items() if z is zone and num not in self.delivered
        )

    def total_pending(self) -> int:
        """Assigned packages not yet delivered."""
        return sum(1 for num in self.packages if num not in self.delivered)

    def unassigned_numbers(self) -> list[str]:
        """Numbers in ``[1, package_range]`` with no zone."""
        return [
            str(n) for n in range(1, self.package_range + 1) if str(n) not in self.packages
        ]

    def zone_packages(self, zone: Zone, *, include_delivered: bool = True) -> list[str]:
        """Numbers assigned to *zone*, sorted numerically."""
        return sort_numbers(
            [
                num
                for num, z in self.packages.items()
                if z is zone and (include_delivered or num not in self.delivered)
            ]
        )

    def all_done(self) -> bool:
        """True when packages exist and every one of them is delivered."""
        return bool(self.packages) and self.total_pending() == 0
