"""Shared type definitions for tabby."""

from collections.abc import Callable

# Site-absolute output path (e.g., "/", "/about/", "/css/site.css")
type URLPath = str

# Posix path relative to the site source directory (e.g., "_posts/2020-01-01-hi.md")
type SourceRelPath = str

# Resolves a source-relative filename to its URL path, or None when unknown
type FilenameResolver = Callable[[SourceRelPath], URLPath | None]
