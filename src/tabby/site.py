"""Site — the orchestrator for one build or serve session.

A Site owns the collections, the flat document list, the URL -> document
route table, and two lazily materialized values: the renderer manager
and the template "drop" (``site.*`` as seen by templates).

Lifecycle::

    site = Site(config, flags=flags)   # defaults + config + flags
    site.read()                        # one synchronous load phase
    site.url_page("/about/")           # queries, from any thread
    site.render_document(page)         # renderer initialized on first use

Thread Safety:
    The route table, document lists and reverse index are built by
    ``read()`` and never mutated afterwards.  The renderer manager and
    the drop are created behind execute-once gates, so concurrent first
    callers share a single initialization.  ``set_absolute_url`` mutates
    the config and the cached drop; call it before serving starts.

"""

from __future__ import annotations

import json
import os
import posixpath
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import yaml

from tabby._errors import ConfigError, ContentError
from tabby._once import Once
from tabby.config import Flags, SiteConfig
from tabby.content.collection import Collection, page_permalink
from tabby.content.document import MARKDOWN_EXTS, Document, Page, StaticFile
from tabby.content.exclude import ExclusionPolicy, normalize_rel
from tabby.content.frontmatter import has_front_matter, read_front_matter
from tabby.observability.events import (
    DocumentRendered,
    RendererInitialized,
    SiteLoaded,
    now_ns,
)
from tabby.plugins import run_hooks
from tabby.rendering.manager import RendererManager

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tabby.observability.log import EventLog

type RendererFactory = Callable[..., RendererManager]

_DATA_EXTS = (".yml", ".yaml", ".json")


class Site:
    """A Jekyll-style site: documents, routes and the shared renderer.

    Args:
        config: Site configuration (defaults when omitted).
        flags: Command-line overrides, applied on top of *config*.
        renderer_factory: Builds the renderer manager; called as
            ``factory(config, relative_filename_to_url=..., theme_dir=...)``.
        event_log: Optional log receiving load and renderer events.

    """

    def __init__(
        self,
        config: SiteConfig | None = None,
        *,
        flags: Flags | None = None,
        renderer_factory: RendererFactory = RendererManager,
        event_log: EventLog | None = None,
    ) -> None:
        self._config = config if config is not None else SiteConfig()
        self._flags = flags or Flags()
        self._config.apply_flags(self._flags)
        self._policy = ExclusionPolicy(self._config.include, self._config.exclude)
        self._renderer_factory = renderer_factory
        self._event_log = event_log

        self.collections: list[Collection] = []
        self._routes: dict[str, Document] = {}
        self._docs: list[Document] = []
        self._non_collection_pages: list[Page] = []
        self._by_source: dict[str, Document] = {}
        self._data: dict[str, Any] = {}
        self._theme_dir: Path | None = None
        self._loaded = False

        self._renderer: Once[RendererManager] = Once(self._initialize_renderer)
        self._drop: Once[dict[str, Any]] = Once(self._build_drop)

    @classmethod
    def load(
        cls,
        source: str | Path = ".",
        flags: Flags | None = None,
        **kwargs: Any,
    ) -> Site:
        """Load ``_config.yml`` from *source*, construct a Site and read it.

        Raises:
            ConfigError: On a bad config file, permalink or path.
            ContentError: On unreadable content.

        """
        from tabby.config_loader import load_config

        config = load_config(Path(source), flags)
        site = cls(config, flags=flags, **kwargs)
        site.read()
        return site

    def __repr__(self) -> str:
        return f"Site({str(self.source_dir)!r}, {len(self._routes)} routes)"

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> SiteConfig:
        return self._config

    @property
    def flags(self) -> Flags:
        return self._flags

    @property
    def source_dir(self) -> Path:
        """The site source directory."""
        return self._config.source

    @property
    def dest_dir(self) -> Path:
        """The site destination directory (absolute)."""
        return self._config.destination_path

    @property
    def abs_dir(self) -> Path:
        return self._config.source.resolve()

    @property
    def theme_dir(self) -> Path | None:
        return self._theme_dir

    @property
    def data(self) -> Mapping[str, Any]:
        """Contents of the ``_data`` directory, keyed by file stem."""
        return MappingProxyType(self._data)

    @property
    def loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def read(self) -> None:
        """Read collections, pages and data files, then build the routes.

        Must be called exactly once, before the site is queried.

        Raises:
            RuntimeError: If the site was already read.
            ConfigError: If the source or theme directory is missing, or a
                permalink is malformed.
            ContentError: On invalid front matter or, with
                ``strict_routes``, a URL claimed twice.

        """
        if self._loaded:
            msg = "site already read; create a new Site to reload"
            raise RuntimeError(msg)

        t0 = time.perf_counter()
        if not self.source_dir.is_dir():
            msg = f"source directory {self.source_dir} does not exist"
            raise ConfigError(msg)
        self._theme_dir = self._resolve_theme_dir()

        self._read_pages()
        for name in self._config.collections:
            collection = Collection(name, self._config, self._policy)
            for doc in collection.read():
                self._add_document(doc, output=doc.output)
            self.collections.append(collection)
        self._data = self._read_data()
        self._by_source = self._build_source_index()
        self._loaded = True

        run_hooks(self._config.plugins, lambda plugin: plugin.post_read(self))

        self._record(SiteLoaded(
            source=str(self.source_dir),
            documents=len(self._docs),
            routes=len(self._routes),
            collections=len(self.collections),
            load_ms=(time.perf_counter() - t0) * 1000,
            timestamp_ns=now_ns(),
        ))

    def _resolve_theme_dir(self) -> Path | None:
        theme = self._config.theme_path
        if theme is None:
            return None
        if not theme.is_dir():
            msg = f"theme directory {theme} does not exist"
            raise ConfigError(msg)
        return theme.resolve()

    def _read_pages(self) -> None:
        """Walk the source tree for files outside collections."""
        source = self.source_dir
        dest = self.dest_dir.resolve()

        for dirpath, dirnames, filenames in os.walk(source):
            current = Path(dirpath)
            dir_rel = current.relative_to(source).as_posix()
            keep: list[str] = []
            for name in sorted(dirnames):
                rel = name if dir_rel == "." else f"{dir_rel}/{name}"
                if dir_rel == "." and name.startswith("_"):
                    continue
                if (current / name).resolve() == dest or self.exclude(rel):
                    continue
                keep.append(name)
            dirnames[:] = keep

            for name in sorted(filenames):
                rel = name if dir_rel == "." else f"{dir_rel}/{name}"
                if dir_rel == "." and name.startswith("_"):
                    continue
                if self.exclude(rel):
                    continue
                doc = self._make_file(current / name, rel)
                if doc is None:
                    continue
                self._add_document(doc, output=True)
                if isinstance(doc, Page):
                    self._non_collection_pages.append(doc)

    def _make_file(self, path: Path, rel: str) -> Document | None:
        if not has_front_matter(path):
            return StaticFile(path, rel)
        front_matter, body, body_line = read_front_matter(path)
        if front_matter.get("published", True) is False and not self._config.unpublished:
            return None
        ext = posixpath.splitext(rel)[1].lower()
        output_ext = ".html" if ext in MARKDOWN_EXTS else ext
        return Page(
            path,
            rel,
            front_matter,
            content=body,
            body_line=body_line,
            permalink=page_permalink(rel, output_ext, self._config.permalink),
        )

    def _read_data(self) -> dict[str, Any]:
        """Load ``_data/**/*.{yml,yaml,json}`` into nested dicts."""
        root = self._config.data_path
        data: dict[str, Any] = {}
        if not root.is_dir():
            return data
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in _DATA_EXTS:
                continue
            rel = path.relative_to(self.source_dir).as_posix()
            if self.exclude(rel):
                continue
            *dirs, _ = path.relative_to(root).parts
            target = data
            for part in dirs:
                target = target.setdefault(part, {})
            target[path.stem] = _load_data_file(path)
        return data

    def _add_document(self, doc: Document, *, output: bool) -> None:
        """Track *doc*; output documents also claim their URL in the routes.

        Two documents with the same URL: the later one wins, unless
        ``strict_routes`` is set.
        """
        self._docs.append(doc)
        if not output:
            return
        existing = self._routes.get(doc.url)
        if existing is not None and self._config.strict_routes:
            msg = f"{doc.rel_path} and {existing.rel_path} both map to {doc.url!r}"
            raise ContentError(msg)
        self._routes[doc.url] = doc

    def _build_source_index(self) -> dict[str, Document]:
        index: dict[str, Document] = {}
        source = self.source_dir
        for doc in self._routes.values():
            if doc.source_path is None:
                continue
            try:
                rel = doc.source_path.relative_to(source).as_posix()
            except ValueError:
                continue
            index.setdefault(rel, doc)
        return index

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def routes(self) -> Mapping[str, Document]:
        """URL path -> output document (read-only view)."""
        return MappingProxyType(self._routes)

    @property
    def documents(self) -> list[Document]:
        """All documents, whether or not they are output."""
        return list(self._docs)

    @property
    def non_collection_pages(self) -> list[Page]:
        return list(self._non_collection_pages)

    @property
    def posts(self) -> list[Page]:
        """Posts, newest first."""
        collection = self.collection("posts")
        if collection is None:
            return []
        posts = [d for d in collection if isinstance(d, Page)]
        return posts[::-1]

    def collection(self, name: str) -> Collection | None:
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None

    def output_docs(self) -> list[Document]:
        """Documents that are written to the destination."""
        return list(self._routes.values())

    def pages(self) -> list[Page]:
        """All pages (rendered documents), output or not."""
        return [d for d in self._docs if isinstance(d, Page)]

    def exclude(self, rel: str) -> bool:
        """Return True if the site-relative path *rel* is not published.

        Top-level ``_underscore`` files and directories are not excluded.
        """
        return self._policy.excluded(rel)

    def keep_file(self, filename: str) -> bool:
        """Whether cleaning the destination should leave *filename* in place."""
        return filename in self._config.keep_files

    def url_page(self, urlpath: str) -> Document | None:
        """Return the document served at *urlpath*, or *None*.

        Tried in order: the exact path, ``<path>/index.html``,
        ``<path>/index.htm``, then ``<path>.html``.
        """
        for candidate in (
            urlpath,
            posixpath.join(urlpath, "index.html"),
            posixpath.join(urlpath, "index.htm"),
            urlpath + ".html",
        ):
            doc = self._routes.get(candidate)
            if doc is not None:
                return doc
        return None

    def file_path_page(self, rel: str) -> Document | None:
        """Return the output document read from source-relative *rel*, or *None*."""
        try:
            key = normalize_rel(rel)
        except ValueError:
            return None
        return self._by_source.get(key)

    def filename_url_path(self, rel: str) -> str | None:
        """URL path of the output document read from *rel*, or *None*."""
        doc = self.file_path_page(rel)
        return doc.url if doc is not None else None

    def filename_urls(self) -> dict[str, str]:
        """Source-relative path -> URL path, for every page."""
        urls: dict[str, str] = {}
        for page in self.pages():
            if page.source_path is None:
                continue
            urls[self.relative_path(page.source_path)] = page.url
        return urls

    def relative_path(self, path: Path) -> str:
        """*path* relative to the theme directory if inside it, else to the source."""
        if self._theme_dir is not None and path.is_relative_to(self._theme_dir):
            return path.relative_to(self._theme_dir).as_posix()
        return path.relative_to(self.source_dir).as_posix()

    # ------------------------------------------------------------------
    # Renderer manager (lazy, execute-once)
    # ------------------------------------------------------------------

    @property
    def renderer_manager(self) -> RendererManager:
        """The initialized renderer manager.

        Raises:
            RuntimeError: If ``ensure_renderer()`` has not succeeded yet.

        """
        renderer = self._renderer.peek()
        if renderer is None:
            msg = "uninitialized rendering manager; call ensure_renderer() first"
            raise RuntimeError(msg)
        return renderer

    @property
    def template_engine(self) -> Any:
        return self.renderer_manager.template_engine

    def ensure_renderer(self) -> RendererManager:
        """Create the renderer manager on first call and return it.

        Concurrent callers block until the single initialization finishes.
        A failure is permanent for this Site: every later call re-raises
        the same error.

        Raises:
            PluginError: If a plugin's ``configure_template_engine`` failed.
            RenderError: If the manager could not be constructed.

        """
        return self._renderer.get()

    def _initialize_renderer(self) -> RendererManager:
        t0 = time.perf_counter()
        try:
            renderer = self._renderer_factory(
                self._config,
                relative_filename_to_url=self.filename_url_path,
                theme_dir=self._theme_dir,
            )
            engine = renderer.template_engine
            ran = run_hooks(
                self._config.plugins,
                lambda plugin: plugin.configure_template_engine(engine),
            )
        except Exception as exc:
            self._record(RendererInitialized(
                plugins=(),
                ok=False,
                error=str(exc),
                duration_ms=(time.perf_counter() - t0) * 1000,
                timestamp_ns=now_ns(),
            ))
            raise
        self._record(RendererInitialized(
            plugins=tuple(ran),
            ok=True,
            error="",
            duration_ms=(time.perf_counter() - t0) * 1000,
            timestamp_ns=now_ns(),
        ))
        return renderer

    def render_document(self, doc: Document) -> bytes:
        """Output bytes for *doc*: rendered pages, verbatim static files."""
        t0 = time.perf_counter()
        if isinstance(doc, Page):
            html = self.ensure_renderer().render_document(doc, self.to_drop())
            data = html.encode("utf-8")
        elif doc.source_path is None:
            data = b""
        else:
            data = doc.source_path.read_bytes()
        self._record(DocumentRendered(
            url=doc.url,
            source=doc.rel_path,
            size_bytes=len(data),
            duration_ms=(time.perf_counter() - t0) * 1000,
            timestamp_ns=now_ns(),
        ))
        return data

    # ------------------------------------------------------------------
    # Drop
    # ------------------------------------------------------------------

    def to_drop(self) -> Mapping[str, Any]:
        """Read-only ``site`` variables for templates, built on first use."""
        return MappingProxyType(self._drop.get())

    def _build_drop(self) -> dict[str, Any]:
        drop: dict[str, Any] = dict(self._config.variables)
        posts = [p.to_drop() for p in self.posts]
        drop.update({
            "url": self._config.absolute_url,
            "baseurl": self._config.baseurl,
            "time": datetime.now(),
            "pages": [p.to_drop() for p in self._non_collection_pages],
            "posts": posts,
            "static_files": [d.to_drop() for d in self._docs if d.is_static],
            "html_pages": [
                p.to_drop() for p in self._non_collection_pages if p.output_ext == ".html"
            ],
            "data": self._data,
            "documents": [
                d.to_drop() for c in self.collections for d in c if not d.is_static
            ],
            "collections": [
                {
                    "label": c.name,
                    "output": c.output,
                    "docs": [d.to_drop() for d in c if not d.is_static],
                }
                for c in self.collections
            ],
        })
        for c in self.collections:
            if c.name != "posts":
                drop[c.name] = [d.to_drop() for d in c if not d.is_static]
        return drop

    def set_absolute_url(self, url: str) -> None:
        """Override the site URL (the server sets it to its own address).

        Updates the configuration and, if the drop was already built, its
        ``url`` entry.  Not synchronized: call before serving starts.
        """
        self._config.absolute_url = url
        self._config.variables["url"] = url
        drop = self._drop.peek()
        if drop is not None:
            drop["url"] = url

    # ------------------------------------------------------------------

    def _record(self, event: Any) -> None:
        if self._event_log is not None:
            self._event_log.append(event)


def _load_data_file(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"{path}: invalid data file: {exc}"
        raise ContentError(msg) from exc
