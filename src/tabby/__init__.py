"""Tabby — a Jekyll-compatible site model for Python.

Reads a directory of content and templates into a Site: collections of
documents, a URL -> document route table, and a lazily initialized
renderer (kida templates, patitas Markdown).  The same Site can be
written to disk or served on demand.

Quick start::

    import tabby

    tabby.build("my-site/")       # Static export to _site/
    tabby.serve("my-site/")       # Render on request

Queries::

    site = tabby.Site.load("my-site/")
    site.url_page("/about/")
    site.filename_url_path("_posts/2020-01-01-hi.md")

"""

__version__ = "0.1.0"
__all__ = [
    "Flags",
    "Site",
    "SiteConfig",
    "__version__",
    "build",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import tabby`` fast; chirp is only imported when serving.
    """
    if name == "Site":
        from tabby.site import Site

        return Site

    if name == "SiteConfig":
        from tabby.config import SiteConfig

        return SiteConfig

    if name == "Flags":
        from tabby.config import Flags

        return Flags

    if name == "build":
        from tabby.app import build

        return build

    if name == "serve":
        from tabby.app import serve

        return serve

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
