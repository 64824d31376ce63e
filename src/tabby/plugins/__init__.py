"""Plugins — named lifecycle extensions looked up from a process-wide registry.

Public API::

    from tabby.plugins import Plugin, register

    class Shout(Plugin):
        def configure_template_engine(self, engine):
            engine.update_filters({"shout": str.upper})

    register("shout", Shout())
"""

from tabby.plugins.builtin import register_builtins
from tabby.plugins.registry import Plugin, lookup, register, registered, run_hooks, unregister

register_builtins()

__all__ = [
    "Plugin",
    "lookup",
    "register",
    "registered",
    "run_hooks",
    "unregister",
]
