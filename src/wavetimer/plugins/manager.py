"""pluggy-backed plugin registry for the background service.

Third-party plugins are installed packages advertising the
``wavetimer.plugins`` entry point group.

INVARIANT: Plugin failures are warnings, never errors. :meth:`PluginManager.notify`
is the only way the service calls hooks.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from wavetimer.plugins.hookspecs import WavetimerHookSpec

PROJECT_NAME = "wavetimer"
ENTRY_POINT_GROUP = "wavetimer.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Registry plus fault-tolerant dispatch of the wavetimer hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(WavetimerHookSpec)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Register every installed entry-point plugin; return all plugin names."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if count:
            self._instantiate_class_plugins()
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        name = name or type(plugin).__name__
        self._pm.register(plugin, name=name)
        logger.debug("Registered plugin: %s", name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def notify(self, hook_name: str, **payload: Any) -> bool:
        """Fire *hook_name* with *payload*. False if a plugin raised (already logged)."""
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            return True
        try:
            caller(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
            return False
        return True

    def _instantiate_class_plugins(self) -> None:
        # An entry point may name a class; its hooks need a bound instance.
        classes = [p for p in self._pm.get_plugins() if inspect.isclass(p)]
        for cls in classes:
            name = self._pm.get_name(cls) or cls.__name__
            self._pm.unregister(cls)
            try:
                self._pm.register(cls(), name=name)
            except Exception:
                logger.warning("Plugin %s could not be instantiated; skipped", name, exc_info=True)
