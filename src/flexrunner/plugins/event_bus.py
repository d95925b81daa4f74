"""Best-effort hook dispatch.

Hooks run synchronously in the caller's thread. Any exception raised by a
plugin is logged and discarded: a broken sound or observer plugin never
fails the intent that triggered it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flexrunner.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatches ``post_action`` and ``feedback`` hooks, swallowing failures."""

    def __init__(self, plugin_manager: PluginManager, *, feedback_enabled: bool = True) -> None:
        self._pm = plugin_manager
        self.feedback_enabled = feedback_enabled

    def _call(self, hook_name: str, **kwargs: Any) -> bool:
        try:
            getattr(self._pm.hook, hook_name)(**kwargs)
        except Exception:
            logger.debug("Hook %s failed", hook_name, exc_info=True)
            return False
        return True

    def post_action(self, op: str, data: dict[str, Any]) -> bool:
        """Notify observers; returns False if a plugin raised."""
        return self._call("post_action", op=op, data=data)

    def feedback(self, style: str) -> bool:
        """Play a feedback cue; returns False if disabled or a plugin raised."""
        if not self.feedback_enabled:
            return False
        return self._call("feedback", style=style)
