"""Collections — named, ordered groups of documents.

A collection named ``foo`` reads the ``_foo`` directory of the site
source.  ``posts`` is always present; it also reads ``_drafts`` when
drafts are enabled, and its documents are dated from their file names.

Population is a one-time scan.  Every candidate path is filtered through
the site's exclusion policy before it becomes a document.
"""

from __future__ import annotations

import os
import posixpath
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tabby.content.document import Document, Page, StaticFile, parse_post_name
from tabby.content.frontmatter import has_front_matter, read_front_matter
from tabby.content.permalink import PERMALINK_STYLES, add_permalink_suffix

if TYPE_CHECKING:
    from tabby.config import SiteConfig
    from tabby.content.exclude import ExclusionPolicy

_DEFAULT_COLLECTION_PERMALINK = "/:collection/:path:output_ext"


def page_permalink(rel_path: str, output_ext: str, style: str) -> str:
    """Default permalink pattern for a non-collection page.

    ``index`` pages map to their directory; other HTML pages follow the
    site's post style (trailing slash for pretty styles, extension
    otherwise); non-HTML pages keep their extension.
    """
    basename = posixpath.splitext(posixpath.basename(rel_path))[0]
    if output_ext != ".html":
        return "/:path/:basename:output_ext"
    if basename == "index":
        return "/:path/"
    return add_permalink_suffix("/:path/:basename", style)


class Collection:
    """A named group of documents read from ``_<name>``.

    Args:
        name: Collection name (unique within a site).
        config: Site configuration.
        policy: Exclusion policy used to filter candidate paths.

    """

    def __init__(self, name: str, config: SiteConfig, policy: ExclusionPolicy) -> None:
        self.name = name
        self._config = config
        self._policy = policy
        self._options: dict[str, Any] = config.collections.get(name) or {}
        self._docs: list[Document] = []

    def __repr__(self) -> str:
        return f"Collection({self.name!r}, {len(self._docs)} documents)"

    def __iter__(self) -> Iterator[Document]:
        return iter(self._docs)

    def __len__(self) -> int:
        return len(self._docs)

    @property
    def documents(self) -> list[Document]:
        return list(self._docs)

    @property
    def is_posts(self) -> bool:
        return self.name == "posts"

    @property
    def output(self) -> bool:
        return self._config.collection_output(self.name)

    @property
    def permalink(self) -> str:
        """Permalink pattern for documents of this collection."""
        pattern = self._options.get("permalink")
        if pattern:
            return str(pattern)
        if self.is_posts:
            return PERMALINK_STYLES.get(self._config.permalink, self._config.permalink)
        return _DEFAULT_COLLECTION_PERMALINK

    @property
    def rel_dir(self) -> str:
        """Collection directory relative to the source root."""
        return "_" + self.name

    def read(self) -> list[Document]:
        """Scan the collection directory and build its documents.

        Posts are sorted by date, other collections by path.

        Raises:
            ConfigError: If a document's permalink is malformed.
            ContentError: If a document's front matter is invalid.

        """
        docs = self._read_dir(self.rel_dir, draft=False)
        if self.is_posts and self._config.drafts:
            docs.extend(self._read_dir("_drafts", draft=True))

        if self.is_posts:
            docs.sort(key=lambda d: (getattr(d, "date", None) or datetime.min, d.rel_path))
        else:
            docs.sort(key=lambda d: d.rel_path)
        self._docs = docs
        return list(docs)

    def _read_dir(self, rel_dir: str, *, draft: bool) -> list[Document]:
        root = self._config.source / rel_dir
        if not root.is_dir():
            return []

        docs: list[Document] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dir_rel = Path(dirpath).relative_to(self._config.source).as_posix()
            # Prune excluded subdirectories (the collection root itself is top-level)
            dirnames[:] = sorted(
                d for d in dirnames if not self._policy.excluded(f"{dir_rel}/{d}")
            )
            for filename in sorted(filenames):
                rel = f"{dir_rel}/{filename}"
                if self._policy.excluded(rel):
                    continue
                doc = self._make_document(Path(dirpath) / filename, rel, draft=draft)
                if doc is not None:
                    docs.append(doc)
        return docs

    def _make_document(self, path: Path, rel: str, *, draft: bool) -> Document | None:
        if not has_front_matter(path):
            return StaticFile(path, rel, collection=self.name, output=self.output)

        front_matter, body, body_line = read_front_matter(path)
        if front_matter.get("published", True) is False and not self._config.unpublished:
            return None

        fallback_date = None
        if self.is_posts:
            stem = posixpath.splitext(posixpath.basename(rel))[0]
            name_date, _ = parse_post_name(stem)
            if draft:
                fallback_date = datetime.fromtimestamp(path.stat().st_mtime)
            elif name_date is None and "date" not in front_matter:
                # Posts need a date from the file name or front matter
                return None

        page = Page(
            path,
            rel,
            front_matter,
            content=body,
            body_line=body_line,
            permalink=self.permalink,
            collection=self.name,
            output=self.output,
            fallback_date=fallback_date,
        )
        if (
            self.is_posts
            and not self._config.future
            and page.date is not None
            and page.date > datetime.now()
        ):
            return None
        return page
