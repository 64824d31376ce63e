"""Tabby configuration.

SiteConfig is the central configuration object.  It is built once per
site load from defaults, the site's ``_config.yml`` and command-line
flags.  The only field changed after load is the absolute URL, and only
through ``Site.set_absolute_url``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Collection options applied when the config does not name them
_POSTS_DEFAULTS: dict[str, Any] = {"output": True}


def _default_collections() -> dict[str, dict[str, Any]]:
    return {"posts": dict(_POSTS_DEFAULTS)}


@dataclass(frozen=True, slots=True)
class Flags:
    """Command-line overrides applied on top of the loaded configuration.

    ``None`` means "not given"; only given values override the config.

    Attributes:
        source: Site source directory.
        destination: Output directory.
        drafts: Render posts from ``_drafts``.
        future: Publish posts dated in the future.
        unpublished: Render documents marked ``published: false``.
        host: Bind address for ``serve``.
        port: Bind port for ``serve``.

    """

    source: Path | None = None
    destination: Path | None = None
    drafts: bool | None = None
    future: bool | None = None
    unpublished: bool | None = None
    host: str | None = None
    port: int | None = None


@dataclass(slots=True)
class SiteConfig:
    """Configuration for a Tabby site.

    Attributes:
        source: Site source directory.  Always resolved to an absolute path.
        destination: Output directory, absolute or relative to ``source``.
        layouts_dir: Layout directory name inside source (and theme).
        includes_dir: Include directory name inside source (and theme).
        data_dir: Data directory name inside source.
        include: Glob patterns that are always published (include wins).
        exclude: Glob patterns that are never published.
        keep_files: Destination entries left in place when cleaning.
        plugins: Plugin names, run in this order.
        permalink: Permalink style name or pattern for posts.
        collections: Collection name -> options (``output``, ``permalink``).
        absolute_url: Site URL (``url`` in ``_config.yml``).
        baseurl: Path prefix the site is served under.
        theme: Theme directory, absolute or relative to ``source``.
        drafts: Include ``_drafts`` posts.
        future: Include posts dated in the future.
        unpublished: Include documents with ``published: false``.
        strict_routes: Reject two documents claiming the same URL.
        host: Bind address for ``serve``.
        port: Bind port for ``serve``.
        variables: Every key of the config file, exposed to templates as
            ``site.*``.

    """

    source: Path = field(default_factory=Path.cwd)
    destination: Path = field(default_factory=lambda: Path("_site"))
    layouts_dir: str = "_layouts"
    includes_dir: str = "_includes"
    data_dir: str = "_data"
    include: list[str] = field(default_factory=lambda: [".htaccess"])
    exclude: list[str] = field(
        default_factory=lambda: ["Gemfile", "Gemfile.lock", "node_modules", "vendor"]
    )
    keep_files: list[str] = field(default_factory=lambda: [".git", ".svn"])
    plugins: list[str] = field(default_factory=list)
    permalink: str = "date"
    collections: dict[str, dict[str, Any]] = field(default_factory=_default_collections)
    absolute_url: str = ""
    baseurl: str = ""
    theme: str = ""
    drafts: bool = False
    future: bool = False
    unpublished: bool = False
    strict_routes: bool = False
    host: str = "127.0.0.1"
    port: int = 4000
    variables: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.source.is_absolute():
            self.source = self.source.resolve()
        if "posts" not in self.collections:
            self.collections = {"posts": dict(_POSTS_DEFAULTS), **self.collections}

    def apply_flags(self, flags: Flags) -> None:
        """Override configuration values with the given command-line flags."""
        if flags.source is not None:
            self.source = flags.source.resolve()
        if flags.destination is not None:
            self.destination = flags.destination
        if flags.drafts is not None:
            self.drafts = flags.drafts
        if flags.future is not None:
            self.future = flags.future
        if flags.unpublished is not None:
            self.unpublished = flags.unpublished
        if flags.host is not None:
            self.host = flags.host
        if flags.port is not None:
            self.port = flags.port

    @property
    def destination_path(self) -> Path:
        """Absolute path to the output directory."""
        if self.destination.is_absolute():
            return self.destination
        return self.source / self.destination

    @property
    def layouts_path(self) -> Path:
        """Absolute path to the site's layout directory."""
        return self.source / self.layouts_dir

    @property
    def includes_path(self) -> Path:
        """Absolute path to the site's include directory."""
        return self.source / self.includes_dir

    @property
    def data_path(self) -> Path:
        """Absolute path to the site's data directory."""
        return self.source / self.data_dir

    @property
    def theme_path(self) -> Path | None:
        """Absolute theme directory, or *None* when no theme is configured."""
        if not self.theme:
            return None
        theme = Path(self.theme)
        if theme.is_absolute():
            return theme
        return self.source / theme

    def collection_output(self, name: str) -> bool:
        """Whether documents of collection *name* are written to the destination."""
        options = self.collections.get(name) or {}
        return bool(options.get("output", name == "posts"))
