"""Pluggy hook specifications for flexrunner events.

Two hooks: ``post_action`` observes every state change, ``feedback``
plays the cue (vibration/sound stand-in) that accompanies an intent.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("flexrunner")


class FlexrunnerHookSpec:
    """Hook specifications for the flexrunner plugin system."""

    @hookspec
    def post_action(self, op: str, data: dict[str, Any]) -> None:
        """Called after a state change was applied and saved."""

    @hookspec
    def feedback(self, style: str) -> None:
        """Play a feedback cue: ``light``, ``medium``, ``success`` or ``error``."""
