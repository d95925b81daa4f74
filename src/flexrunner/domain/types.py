"""Zone and phase enums.

The five vehicle zones are fixed; their ids are the values written to
storage and to backup documents.
"""

from __future__ import annotations

from enum import StrEnum


class Zone(StrEnum):
    """Physical location inside the vehicle a package is loaded into."""

    PASSENGER = "passenger"
    BACK_LEFT = "backleft"
    BACK_MIDDLE = "backmid"
    BACK_RIGHT = "backright"
    TRUNK = "trunk"


class Phase(StrEnum):
    """Top-level mode of the application."""

    ASSIGNING = "assigning"
    DELIVERING = "delivering"


class FeedbackStyle(StrEnum):
    """Feedback cue emitted after an intent (vibration/sound stand-in)."""

    LIGHT = "light"
    MEDIUM = "medium"
    SUCCESS = "success"
    ERROR = "error"


# Bounds on the package range.
MIN_PACKAGE_RANGE = 1
MAX_PACKAGE_RANGE = 100
DEFAULT_PACKAGE_RANGE = 50
