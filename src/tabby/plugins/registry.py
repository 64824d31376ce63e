"""Plugin registry and hook dispatch.

Plugins are registered by name in a process-wide table.  A site lists
the plugins it wants in ``plugins:``; names that are not registered are
skipped, since plugins are optional capabilities.

Thread Safety:
    The registry is guarded by a lock.  Registration normally happens at
    import time, before any site is loaded.

"""

from __future__ import annotations

import threading
from abc import ABC
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from tabby._errors import PluginError

if TYPE_CHECKING:
    from tabby.site import Site


class Plugin(ABC):  # noqa: B024
    """Base class for tabby plugins.

    Subclasses override the lifecycle methods they care about; the
    defaults do nothing.
    """

    def configure_template_engine(self, engine: Any) -> None:
        """Add filters, globals or loaders to the site's kida ``Environment``."""

    def post_read(self, site: Site) -> None:
        """Inspect the site after all documents have been read."""


_registry: dict[str, Plugin] = {}
_lock = threading.Lock()


def register(name: str, plugin: Plugin) -> None:
    """Register *plugin* under *name*, replacing any previous registration.

    Raises:
        TypeError: If *plugin* is not a ``Plugin`` instance.

    """
    if not isinstance(plugin, Plugin):
        msg = f"plugin {name!r} must be a Plugin instance, got {type(plugin).__name__}"
        raise TypeError(msg)
    with _lock:
        _registry[name] = plugin


def unregister(name: str) -> None:
    """Remove *name* from the registry if present."""
    with _lock:
        _registry.pop(name, None)


def lookup(name: str) -> Plugin | None:
    """Return the plugin registered as *name*, or *None*."""
    with _lock:
        return _registry.get(name)


def registered() -> tuple[str, ...]:
    """Names of all registered plugins, sorted."""
    with _lock:
        return tuple(sorted(_registry))


def run_hooks(names: Iterable[str], hook: Callable[[Plugin], None]) -> list[str]:
    """Call *hook* on each registered plugin in *names*, in order.

    Unregistered names are skipped.  The first failing plugin stops the
    dispatch; plugins after it are not called.

    Returns:
        Names of the plugins the hook ran on.

    Raises:
        PluginError: Wrapping the first exception raised by a plugin.

    """
    ran: list[str] = []
    for name in names:
        plugin = lookup(name)
        if plugin is None:
            continue
        try:
            hook(plugin)
        except PluginError:
            raise
        except Exception as exc:
            raise PluginError(name, str(exc)) from exc
        ran.append(name)
    return ran
