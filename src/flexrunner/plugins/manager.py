"""Plugin discovery and loading.

Discovery: entry points in the ``flexrunner.plugins`` group, plus
built-in plugins registered directly by the CLI context.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from flexrunner.plugins.hookspecs import FlexrunnerHookSpec

PROJECT_NAME = "flexrunner"
ENTRY_POINT_GROUP = "flexrunner.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, registration, and hook relay."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FlexrunnerHookSpec)
        self._loaded: bool = False

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins and return the names of all registered plugins.

        A plugin that fails to load is logged and skipped.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load entry-point plugins", exc_info=True)
        self._instantiate_plugin_classes()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. built-in plugins)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def _instantiate_plugin_classes(self) -> None:
        """Replace plugin classes registered from entry points with instances.

        Hook calls against a class object leave ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", plugin_name, exc_info=True)
                continue
            self._pm.register(instance, name=plugin_name)
