"""Renderer manager — owns the template engine and the layout lookup.

One manager is created lazily per site (see ``Site.ensure_renderer``) and
shared by every render afterwards, from the builder or from concurrent
server requests.

Rendering a page:
    1. Evaluate the page body as a kida template (unless the page sets
       ``render_with_liquid: false``).
    2. Convert Markdown bodies to HTML with patitas.
    3. Wrap the result in its layout, then that layout's layout, and so on.

Thread Safety:
    The kida environment is configured once, before the manager is
    published.  The layout cache is guarded by a lock.

"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kida import Environment, FileSystemLoader
from patitas import Markdown

from tabby._errors import RenderError
from tabby.content.frontmatter import read_front_matter

if TYPE_CHECKING:
    from tabby._types import FilenameResolver
    from tabby.config import SiteConfig
    from tabby.content.document import Page

_POST_EXTS = (".md", ".markdown", ".html")


@dataclass(frozen=True, slots=True)
class Layout:
    """A parsed layout file.

    Attributes:
        name: Layout name as referenced by ``layout:`` (file stem).
        path: Absolute path to the layout file.
        variables: The layout's own front matter.
        template: Compiled kida template of the layout body.

    """

    name: str
    path: Path
    variables: dict[str, Any]
    template: Any

    @property
    def parent(self) -> str | None:
        """Name of the layout this layout is wrapped in, if any."""
        parent = self.variables.get("layout")
        return str(parent) if parent else None


class RendererManager:
    """Template engine, Markdown converter and layouts for one site.

    Args:
        config: Site configuration.
        relative_filename_to_url: Resolves a source-relative filename to
            its URL path (``Site.filename_url_path``).
        theme_dir: Theme directory searched after the site's own
            layouts and includes, or *None*.

    """

    def __init__(
        self,
        config: SiteConfig,
        *,
        relative_filename_to_url: FilenameResolver,
        theme_dir: Path | None = None,
    ) -> None:
        self._config = config
        self._resolve = relative_filename_to_url
        self._theme_dir = theme_dir
        self._layouts: dict[str, Layout] = {}
        self._lock = threading.Lock()
        self._markdown = Markdown(plugins=["table", "strikethrough", "footnotes"])
        self._engine = self._create_environment()

    @property
    def template_engine(self) -> Environment:
        """The kida ``Environment`` shared by all renders."""
        return self._engine

    @property
    def theme_dir(self) -> Path | None:
        return self._theme_dir

    def _search_dirs(self, name: str) -> list[Path]:
        dirs = [self._config.source / name]
        if self._theme_dir is not None:
            dirs.append(self._theme_dir / name)
        return dirs

    def _create_environment(self) -> Environment:
        include_dirs = [
            str(d) for d in self._search_dirs(self._config.includes_dir) if d.is_dir()
        ]
        if include_dirs:
            env = Environment(loader=FileSystemLoader(include_dirs), autoescape=False)
        else:
            env = Environment(autoescape=False)

        env.update_filters({
            "relative_url": self.relative_url,
            "absolute_url": self.absolute_url,
            "markdownify": self.markdownify,
        })
        env.add_global("link", self.link)
        env.add_global("post_url", self.post_url)
        return env

    # ------------------------------------------------------------------
    # Template helpers
    # ------------------------------------------------------------------

    def relative_url(self, url: Any) -> str:
        """Prefix *url* with the site's ``baseurl``."""
        base = self._config.baseurl.rstrip("/")
        path = str(url)
        if not path.startswith("/"):
            path = "/" + path
        return base + path

    def absolute_url(self, url: Any) -> str:
        """Prefix *url* with the site's absolute URL and ``baseurl``."""
        return self._config.absolute_url.rstrip("/") + self.relative_url(url)

    def markdownify(self, text: Any) -> str:
        return self._markdown(str(text or ""))

    def link(self, rel_path: str) -> str:
        """URL of the document read from the source-relative *rel_path*.

        Raises:
            RenderError: If no output document was read from *rel_path*.

        """
        url = self._resolve(str(rel_path).lstrip("/"))
        if url is None:
            msg = f"link: no page for {rel_path!r}"
            raise RenderError(msg)
        return self.relative_url(url)

    def post_url(self, name: str) -> str:
        """URL of the post ``_posts/<name>.<ext>``.

        Raises:
            RenderError: If there is no such post.

        """
        for ext in _POST_EXTS:
            url = self._resolve(f"_posts/{name}{ext}")
            if url is not None:
                return self.relative_url(url)
        msg = f"post_url: no post named {name!r}"
        raise RenderError(msg)

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------

    def find_layout(self, name: str) -> Layout:
        """Return the layout called *name*, site layouts before theme layouts.

        Raises:
            RenderError: If no layout file has that name, or it cannot be
                compiled.

        """
        with self._lock:
            cached = self._layouts.get(name)
        if cached is not None:
            return cached

        path = self._locate_layout(name)
        if path is None:
            msg = f"unknown layout {name!r}"
            raise RenderError(msg)
        variables, body, _ = read_front_matter(path)
        template = self._compile(body, name=str(path))
        layout = Layout(name=name, path=path, variables=variables, template=template)
        with self._lock:
            return self._layouts.setdefault(name, layout)

    def _locate_layout(self, name: str) -> Path | None:
        for directory in self._search_dirs(self._config.layouts_dir):
            if not directory.is_dir():
                continue
            for candidate in sorted(directory.glob(f"{name}.*")):
                if candidate.is_file():
                    return candidate
        return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _compile(self, source: str, *, name: str = "<string>") -> Any:
        try:
            return self._engine.from_string(source)
        except Exception as exc:
            msg = f"{name}: template error: {exc}"
            raise RenderError(msg) from exc

    def render_string(self, source: str, context: dict[str, Any], *, name: str = "<string>") -> str:
        """Evaluate *source* as a template with *context*."""
        template = self._compile(source, name=name)
        try:
            return template.render(**context)
        except RenderError:
            raise
        except Exception as exc:
            msg = f"{name}: render error: {exc}"
            raise RenderError(msg) from exc

    def apply_layouts(self, content: str, layout: str | None, context: dict[str, Any]) -> str:
        """Wrap *content* in the layout chain starting at *layout*.

        Raises:
            RenderError: On a missing layout or a layout cycle.

        """
        seen: set[str] = set()
        while layout:
            if layout in seen:
                msg = f"layout cycle through {layout!r}"
                raise RenderError(msg)
            seen.add(layout)
            found = self.find_layout(layout)
            scope = {**context, "content": content, "layout": found.variables}
            try:
                content = found.template.render(**scope)
            except RenderError:
                raise
            except Exception as exc:
                msg = f"{found.path}: render error: {exc}"
                raise RenderError(msg) from exc
            layout = found.parent
        return content

    def render_document(self, page: Page, site_drop: Any) -> str:
        """Render *page* to its final output text."""
        page_vars = page.to_drop()
        context: dict[str, Any] = {"site": site_drop, "page": page_vars}
        body = page.content
        if page.front_matter.get("render_with_liquid", True) is not False:
            body = self.render_string(body, context, name=page.rel_path)
        if page.is_markdown:
            body = self._markdown(body)
        page_vars["content"] = body
        return self.apply_layouts(body, page.layout, context)
