"""Documents — the units of content a site tracks.

Two variants:

- ``StaticFile``: copied to the destination verbatim.
- ``Page``: rendered through the template engine.  Pages that belong to a
  collection (posts, or a user-defined collection) carry the collection
  name and, for posts, a date.

Source path and URL are fixed when the document is created.  The front
matter mapping is owned by the document; ``to_drop()`` hands templates a
copy with the computed variables (``url``, ``path``, ``date``...) merged in.
"""

from __future__ import annotations

import posixpath
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

from tabby._errors import ContentError
from tabby.content.permalink import compute_url, slugify

# Source extensions converted from Markdown to HTML
MARKDOWN_EXTS: frozenset[str] = frozenset({".md", ".markdown", ".mkd", ".mkdn"})

_POST_NAME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})-(.+)$")


def parse_post_name(stem: str) -> tuple[date | None, str]:
    """Split ``2020-01-01-hello`` into ``(date(2020, 1, 1), "hello")``.

    Names without a date prefix return ``(None, stem)``.
    """
    m = _POST_NAME_RE.match(stem)
    if m is None:
        return None, stem
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3))), m.group(4)
    except ValueError:
        return None, stem


def coerce_date(value: Any, *, source: str) -> datetime:
    """Convert a front matter ``date`` value to a naive local ``datetime``.

    Values with a UTC offset are converted to local time, so every post
    date compares with every other.

    Raises:
        ContentError: If the value is not a date.

    """
    if isinstance(value, datetime):
        return _local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return _local(datetime.fromisoformat(value.strip()))
        except ValueError:
            pass
    msg = f"{source}: invalid date {value!r}"
    raise ContentError(msg)


def _local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


class Document:
    """Base class for everything a site tracks.

    Args:
        source_path: Absolute path of the input file, or *None* for
            synthetic documents.
        rel_path: Posix path relative to the site source directory.
        front_matter: Per-document variables.
        permalink: Permalink pattern (or style name) used to compute the URL.
        collection: Owning collection name, or *None*.
        output: Whether the document is written to the destination.

    Raises:
        ConfigError: If the permalink yields an empty or malformed URL.

    """

    is_static = False

    def __init__(
        self,
        source_path: Path | None,
        rel_path: str,
        front_matter: dict[str, Any] | None = None,
        *,
        permalink: str,
        collection: str | None = None,
        output: bool = True,
    ) -> None:
        self._source_path = source_path
        self._rel_path = rel_path
        self.front_matter: dict[str, Any] = dict(front_matter or {})
        self._collection = collection
        self._output = output
        pattern = self.front_matter.get("permalink") or permalink
        self._url = compute_url(str(pattern), self.url_placeholders(), source=rel_path)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._rel_path!r} -> {self._url!r})"

    @property
    def source_path(self) -> Path | None:
        return self._source_path

    @property
    def rel_path(self) -> str:
        """Source path relative to the site source directory (posix)."""
        return self._rel_path

    @property
    def url(self) -> str:
        return self._url

    @property
    def collection(self) -> str | None:
        return self._collection

    @property
    def output(self) -> bool:
        return self._output

    @property
    def ext(self) -> str:
        return posixpath.splitext(self._rel_path)[1]

    @property
    def output_ext(self) -> str:
        return self.ext

    @property
    def basename(self) -> str:
        """File name without directory or extension."""
        return posixpath.splitext(posixpath.basename(self._rel_path))[0]

    @property
    def published(self) -> bool:
        return self.front_matter.get("published", True) is not False

    def collection_rel_path(self) -> str:
        """Path relative to the collection directory (or the source root)."""
        if self._collection is None:
            return self._rel_path
        head, _, tail = self._rel_path.partition("/")
        return tail if head.startswith("_") else self._rel_path

    def url_placeholders(self) -> dict[str, str]:
        """Values for the ``:name`` placeholders of a permalink pattern."""
        rel = self.collection_rel_path()
        directory = posixpath.dirname(rel)
        placeholders = {
            "basename": self.basename,
            "name": self.basename,
            "title": str(self.front_matter.get("slug") or self.basename),
            "slug": slugify(str(self.front_matter.get("slug") or self.basename)),
            "output_ext": self.output_ext,
            "collection": self._collection or "",
            "categories": "",
        }
        if self._collection is None:
            placeholders["path"] = directory
        else:
            placeholders["path"] = posixpath.splitext(rel)[0]
        return placeholders

    def to_drop(self) -> dict[str, Any]:
        """Template variables for this document (a fresh copy on each call)."""
        drop = dict(self.front_matter)
        drop.update({
            "url": self._url,
            "path": self._rel_path,
            "name": posixpath.basename(self._rel_path),
            "collection": self._collection,
        })
        return drop


class StaticFile(Document):
    """A file without front matter, copied verbatim."""

    is_static = True

    def __init__(
        self,
        source_path: Path | None,
        rel_path: str,
        *,
        collection: str | None = None,
        output: bool = True,
    ) -> None:
        pattern = "/:collection/:path:output_ext" if collection else "/:path"
        super().__init__(
            source_path, rel_path, {}, permalink=pattern, collection=collection, output=output,
        )

    def url_placeholders(self) -> dict[str, str]:
        placeholders = super().url_placeholders()
        if self.collection is None:
            placeholders["path"] = self.rel_path
        return placeholders

    def to_drop(self) -> dict[str, Any]:
        drop = super().to_drop()
        drop["extname"] = self.ext
        drop["basename"] = self.basename
        return drop


class Page(Document):
    """A document with front matter, rendered through the template engine.

    Args:
        content: Body text following the front matter.
        body_line: 1-based line of the body in the source file.
        fallback_date: Date used when neither front matter nor file name
            has one (drafts use the file modification time).

    """

    def __init__(
        self,
        source_path: Path | None,
        rel_path: str,
        front_matter: dict[str, Any] | None = None,
        *,
        content: str = "",
        body_line: int = 1,
        permalink: str,
        collection: str | None = None,
        output: bool = True,
        fallback_date: datetime | None = None,
    ) -> None:
        self.content = content
        self.body_line = body_line
        fm = front_matter or {}
        stem = posixpath.splitext(posixpath.basename(rel_path))[0]
        name_date, self._slug = parse_post_name(stem) if collection == "posts" else (None, stem)
        if "date" in fm:
            self._date: datetime | None = coerce_date(fm["date"], source=rel_path)
        elif name_date is not None:
            self._date = datetime(name_date.year, name_date.month, name_date.day)
        else:
            self._date = fallback_date
        super().__init__(
            source_path, rel_path, fm, permalink=permalink, collection=collection, output=output,
        )

    @property
    def output_ext(self) -> str:
        if self.ext.lower() in MARKDOWN_EXTS:
            return ".html"
        return self.ext

    @property
    def is_markdown(self) -> bool:
        return self.ext.lower() in MARKDOWN_EXTS

    @property
    def date(self) -> datetime | None:
        return self._date

    @property
    def slug(self) -> str:
        return self._slug

    @property
    def categories(self) -> list[str]:
        return _as_list(self.front_matter.get("category")) + _as_list(
            self.front_matter.get("categories")
        )

    @property
    def layout(self) -> str | None:
        layout = self.front_matter.get("layout")
        return str(layout) if layout else None

    def url_placeholders(self) -> dict[str, str]:
        placeholders = super().url_placeholders()
        slug = str(self.front_matter.get("slug") or self._slug)
        placeholders["title"] = slug
        placeholders["slug"] = slugify(slug)
        placeholders["categories"] = "/".join(
            dict.fromkeys(c.lower() for c in self.categories)
        )
        if self._date is not None:
            d = self._date
            placeholders.update({
                "year": f"{d.year:04d}",
                "month": f"{d.month:02d}",
                "day": f"{d.day:02d}",
                "i_month": str(d.month),
                "i_day": str(d.day),
                "short_year": f"{d.year % 100:02d}",
                "y_day": f"{d.timetuple().tm_yday:03d}",
                "hour": f"{d.hour:02d}",
                "minute": f"{d.minute:02d}",
                "second": f"{d.second:02d}",
            })
        return placeholders

    def to_drop(self) -> dict[str, Any]:
        drop = super().to_drop()
        if self.collection == "posts":
            drop.setdefault("title", self._slug.replace("-", " ").capitalize())
        if self._date is not None:
            drop["date"] = self._date
        drop["slug"] = self._slug
        drop["categories"] = self.categories
        drop["tags"] = _as_list(self.front_matter.get("tags"))
        return drop
