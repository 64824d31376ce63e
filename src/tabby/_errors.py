"""Tabby error hierarchy.

All tabby-specific errors inherit from TabbyError for easy catching.
Lookup misses are not errors: resolution queries return ``None``.
"""


class TabbyError(Exception):
    """Base error for all tabby operations."""


class ConfigError(TabbyError):
    """Invalid or missing configuration (including malformed permalinks)."""


class ContentError(TabbyError):
    """Error reading content (front matter, route collisions)."""


class RenderError(TabbyError):
    """Error rendering a document (missing layout, template failure)."""


class PluginError(TabbyError):
    """A plugin lifecycle hook failed.

    Attributes:
        plugin: Registered name of the failing plugin.

    """

    def __init__(self, plugin: str, message: str) -> None:
        super().__init__(f"plugin {plugin!r}: {message}")
        self.plugin = plugin


class ExportError(TabbyError):
    """Error during static export."""
