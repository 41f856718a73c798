"""Plugin discovery, loading and configuration."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from functools import partial
from importlib import metadata
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..config import RepoState
from ..errors import PluginLoadError
from ..logging import get_logger
from .base import ABORTED, CaptureContext, OptionPrompt, Plugin, Prompt

_ENTRY_POINT_GROUP = "lolcommits.plugins"

# Imported lazily so a missing optional library only disables its own plugin.
_BUILTIN_PLUGINS: Dict[str, str] = {
    "loltext": "lolcommits.plugins.loltext:Loltext",
    "uploldz": "lolcommits.plugins.uploldz:Uploldz",
}

logger = get_logger("plugins")


@dataclass
class PluginDescriptor:
    """A discovered plugin, its loaded instance and any load failure."""

    name: str
    source: str
    loader: Callable[[], object]
    instance: Optional[Plugin] = None
    error: Optional[PluginLoadError] = None

    @property
    def loaded(self) -> bool:
        return self.instance is not None


class PluginRegistry:
    """Discovers plugins once per invocation and hands out loaded instances.

    Built-in plugins are registered first in a fixed order, followed by
    ``lolcommits.plugins`` entry points. The first registration of a name
    wins; later ones are logged and skipped.
    """

    def __init__(
        self,
        state: RepoState | None = None,
        *,
        builtins: Mapping[str, str] | None = None,
        include_entry_points: bool = True,
    ) -> None:
        self.state = state
        self._builtins = dict(_BUILTIN_PLUGINS if builtins is None else builtins)
        self._include_entry_points = include_entry_points
        self._descriptors: Dict[str, PluginDescriptor] = {}
        self._discovered = False

    # ------------------------------------------------------------------
    # Discovery and loading

    def register(self, name: str, loader: Callable[[], object], *, source: str = "manual") -> bool:
        if name in self._descriptors:
            logger.warning(
                "Ignoring duplicate plugin '%s' from %s (already registered from %s)",
                name,
                source,
                self._descriptors[name].source,
            )
            return False
        self._descriptors[name] = PluginDescriptor(name=name, source=source, loader=loader)
        return True

    def discover(self) -> List[PluginDescriptor]:
        if not self._discovered:
            for name, target in self._builtins.items():
                self.register(name, partial(_import_target, target), source=target)
            if self._include_entry_points:
                for entry in _iter_entry_points():
                    self.register(entry.name, entry.load, source=getattr(entry, "value", entry.name))
            self._discovered = True
        return list(self._descriptors.values())

    def load(self, descriptor: PluginDescriptor) -> Optional[Plugin]:
        if descriptor.instance is not None or descriptor.error is not None:
            return descriptor.instance
        options = self.state.plugin_options(descriptor.name) if self.state is not None else None
        try:
            descriptor.instance = _coerce_plugin(descriptor.loader(), options)
        except Exception as exc:
            descriptor.error = PluginLoadError(descriptor.name, str(exc))
            logger.warning("%s", descriptor.error)
            logger.debug("Plugin load traceback for '%s'", descriptor.name, exc_info=True)
        return descriptor.instance

    def load_all(self) -> List[PluginDescriptor]:
        descriptors = self.discover()
        for descriptor in descriptors:
            self.load(descriptor)
        return descriptors

    @property
    def load_failures(self) -> List[PluginLoadError]:
        return [d.error for d in self._descriptors.values() if d.error is not None]

    # ------------------------------------------------------------------
    # Lookup

    def names(self) -> List[str]:
        return sorted(d.name for d in self.load_all() if d.loaded)

    def get(self, name: str) -> Optional[PluginDescriptor]:
        self.discover()
        return self._descriptors.get(name)

    def plugins_list(self) -> str:
        return "Available plugins: \n * " + "\n * ".join(self.names())

    def prompt_for_name(
        self,
        *,
        ask: Prompt | None = None,
        echo: Callable[[str], None] = print,
    ) -> str:
        """List every loaded plugin and return the name the user types."""
        echo(self.plugins_list())
        return (ask or input)("Name of plugin to configure: ").strip()

    def find(
        self,
        name: str,
        *,
        ask: Prompt | None = None,
        echo: Callable[[str], None] = print,
    ) -> Optional[PluginDescriptor]:
        """Exact-name lookup; an empty name lists every plugin and prompts for one."""
        self.load_all()
        if not name:
            name = self.prompt_for_name(ask=ask, echo=echo)
        descriptor = self.get(name)
        if descriptor is None or not descriptor.loaded:
            return None
        return descriptor

    def configure(self, descriptor: PluginDescriptor, prompt: Prompt | None = None) -> Dict[str, Any] | object:
        """Run the plugin's interactive configuration; returns options or ``ABORTED``."""
        plugin = self.load(descriptor)
        if plugin is None:
            raise descriptor.error or PluginLoadError(descriptor.name, "not loaded")
        if not plugin.supports_configure:
            logger.info("Plugin '%s' has no configurable options", descriptor.name)
            return ABORTED
        try:
            return plugin.configure_options(prompt or input)
        except (EOFError, KeyboardInterrupt):
            return ABORTED

    def capture_chain(self) -> List[Plugin]:
        """Enabled capture-hook plugins in discovery order."""
        chain: List[Plugin] = []
        for descriptor in self.load_all():
            plugin = descriptor.instance
            if plugin is None or not plugin.supports_capture:
                continue
            if not plugin.enabled:
                logger.debug("Skipping disabled plugin '%s'", descriptor.name)
                continue
            chain.append(plugin)
        return chain


def _import_target(target: str) -> object:
    module_name, _, attribute = target.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attribute) if attribute else module


def _coerce_plugin(obj: object, options: Mapping[str, Any] | None) -> Plugin:
    if isinstance(obj, Plugin):
        obj.options.update(options or {})
        return obj
    if isinstance(obj, type) and issubclass(obj, Plugin):
        return obj(options)
    if callable(obj):
        instance = obj(options)
        if isinstance(instance, Plugin):
            return instance
    raise TypeError("Plugin entry point must be a Plugin subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover
        return []

    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]

    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "ABORTED",
    "CaptureContext",
    "OptionPrompt",
    "Plugin",
    "PluginDescriptor",
    "PluginRegistry",
]
