"""Shared test fixtures for tabby."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest

from tabby.config import SiteConfig
from tabby.site import Site


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative path: text}`` under *root*, creating directories."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return root


class FakeEngine:
    """Stands in for a kida Environment; records what plugins add."""

    def __init__(self) -> None:
        self.filters: dict[str, Any] = {}
        self.globals: dict[str, Any] = {}

    def update_filters(self, filters: dict[str, Any]) -> None:
        self.filters.update(filters)

    def add_global(self, name: str, value: Any) -> None:
        self.globals[name] = value


class FakeRenderer:
    """Renderer manager double: renders a page as ``<p>{url}</p>``."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        relative_filename_to_url: Any,
        theme_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.resolve = relative_filename_to_url
        self.theme_dir = theme_dir
        self.template_engine = FakeEngine()

    def render_document(self, page: Any, site_drop: Any) -> str:
        return f"<p>{page.url}</p>"


class CountingFactory:
    """Renderer factory that counts constructions and can fail or stall."""

    def __init__(self, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.calls = 0
        self.error = error
        self.delay = delay
        self._lock = threading.Lock()

    def __call__(self, config: SiteConfig, **kwargs: Any) -> FakeRenderer:
        with self._lock:
            self.calls += 1
        if self.delay:
            threading.Event().wait(self.delay)
        if self.error is not None:
            raise self.error
        return FakeRenderer(config, **kwargs)


def make_site(
    root: Path,
    files: dict[str, str] | None = None,
    *,
    read: bool = True,
    renderer_factory: Any = FakeRenderer,
    event_log: Any = None,
    **config: Any,
) -> Site:
    """Write *files* under *root* and build a Site over it."""
    write_tree(root, files or {})
    site = Site(
        SiteConfig(source=root, **config),
        renderer_factory=renderer_factory,
        event_log=event_log,
    )
    if read:
        site.read()
    return site


@pytest.fixture
def blog_site(tmp_path: Path) -> Path:
    """A small blog: two pages, one post, and a VCS directory."""
    return write_tree(tmp_path, {
        "_config.yml": "permalink: /blog/:year/:month/:day/:title/\n",
        "index.md": "---\ntitle: Home\n---\n# Welcome\n",
        "about.md": "---\ntitle: About\n---\nAbout us.\n",
        "_posts/2020-01-01-hi.md": "---\ntitle: Hi\n---\nHello.\n",
        ".git/config": "[core]\n",
    })


@pytest.fixture
def clean_plugins():
    """Unregister plugins a test registers under the ``test-`` prefix."""
    from tabby.plugins import registered, unregister

    yield
    for name in registered():
        if name.startswith("test-"):
            unregister(name)
