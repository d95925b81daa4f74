"""Extension layer — plugin system via pluggy.

Discovery: entry points (pip-installed) in the ``flexrunner.plugins`` group.
INVARIANT: Plugin failures are logged, never raised.
"""

from flexrunner.plugins.event_bus import EventBus
from flexrunner.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
