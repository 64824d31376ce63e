"""Exclusion policy — decides whether a source path is published.

The path is walked from itself up to the source root.  At each level the
rules are checked in a fixed order before moving on to the parent:

    1. matches an ``include`` pattern      -> published (include always wins)
    2. matches an ``exclude`` pattern      -> excluded
    3. nested entry whose name starts with ``_`` -> excluded
    4. junk name (``#x``, ``~x``, ``.x``, ``x~``)  -> excluded

Top-level ``_`` entries (``_posts``, ``_layouts``) are not excluded by
rule 3: collection loading has to see them.  Site reading skips them on
its own.

Thread Safety:
    ``ExclusionPolicy`` holds immutable pattern tuples and a per-prefix
    result cache guarded by a lock.  Safe for concurrent use.

"""

from __future__ import annotations

import posixpath
import re
import threading
from collections.abc import Iterable
from functools import lru_cache

_JUNK_NAME_RE = re.compile(r"^[#~]|^\..|~$")


@lru_cache(maxsize=256)
def glob_regex(pattern: str) -> re.Pattern[str]:
    """Compile a shell glob in which ``*``, ``?`` and ``[...]`` never match ``/``."""
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\" and i < n:
            out.append(re.escape(pattern[i]))
            i += 1
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
                continue
            body = pattern[i:end].replace("\\", "\\\\")
            if body[0] in "!^":
                out.append(f"[^/{body[1:]}]")
            else:
                out.append(f"[{body}]")
            i = end + 1
        else:
            out.append(re.escape(c))
    return re.compile("".join(out))


def match_list(patterns: Iterable[str], name: str) -> bool:
    """Return True if *name* matches any of the glob *patterns*.

    Patterns are shell globs matched against the whole site-relative
    path; wildcards stop at ``/``, so ``*.md`` matches ``x.md`` but not
    ``docs/x.md``.  A trailing ``/`` on a pattern is ignored, so
    ``vendor/`` matches the ``vendor`` directory.
    """
    for pattern in patterns:
        pattern = pattern.rstrip("/")
        if pattern and glob_regex(pattern).fullmatch(name):
            return True
    return False


def is_junk_name(basename: str) -> bool:
    """Editor backups, hidden files and similar names that are never published."""
    return bool(_JUNK_NAME_RE.search(basename))


def normalize_rel(rel: str) -> str:
    """Normalize a site-relative path to posix form without ``./`` noise.

    Raises:
        ValueError: If *rel* is absolute or escapes the source root.

    """
    rel = rel.replace("\\", "/")
    if rel.startswith("/"):
        msg = f"expected a site-relative path, got {rel!r}"
        raise ValueError(msg)
    norm = posixpath.normpath(rel) if rel else "."
    if norm == ".." or norm.startswith("../"):
        msg = f"path {rel!r} escapes the site source directory"
        raise ValueError(msg)
    return norm


class ExclusionPolicy:
    """Include/exclude rules for one site configuration.

    Args:
        include: Patterns that are always published.
        exclude: Patterns that are never published.

    """

    __slots__ = ("_cache", "_exclude", "_include", "_lock")

    def __init__(self, include: Iterable[str] = (), exclude: Iterable[str] = ()) -> None:
        self._include = tuple(include)
        self._exclude = tuple(exclude)
        self._cache: dict[str, bool] = {}
        self._lock = threading.Lock()

    def excluded(self, rel: str) -> bool:
        """Return True if the site-relative path *rel* is not published."""
        rel = normalize_rel(rel)
        with self._lock:
            cached = self._cache.get(rel)
        if cached is not None:
            return cached
        result = self._walk(rel)
        with self._lock:
            self._cache[rel] = result
        return result

    def _walk(self, rel: str) -> bool:
        while rel not in (".", ""):
            parent, base = posixpath.split(rel)
            if match_list(self._include, rel):
                return False
            if match_list(self._exclude, rel):
                return True
            if parent and base.startswith("_"):
                return True
            if is_junk_name(base):
                return True
            rel = parent
        return False
