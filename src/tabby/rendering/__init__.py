"""Rendering — the kida template engine and patitas Markdown, behind one manager."""

from tabby.rendering.manager import Layout, RendererManager

__all__ = [
    "Layout",
    "RendererManager",
]
