"""Permalinks — turn a pattern such as ``/:year/:title/`` into a URL path.

Patterns may be one of the named styles below or a literal pattern with
``:name`` placeholders.  The document supplies the placeholder values.
"""

from __future__ import annotations

import re

from tabby._errors import ConfigError

PERMALINK_STYLES: dict[str, str] = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}

_PLACEHOLDER_RE = re.compile(r":([a-z_]+)")
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_MULTI_SLASH_RE = re.compile(r"/{2,}")


def slugify(text: str) -> str:
    """Lowercase *text* and collapse runs of other characters into ``-``."""
    return _SLUG_RE.sub("-", text.lower()).strip("-")


def expand_style(pattern: str) -> str:
    """Return the pattern for a named style, or *pattern* unchanged."""
    return PERMALINK_STYLES.get(pattern, pattern)


def add_permalink_suffix(template: str, style: str) -> str:
    """Finish a page template the way the site's post style ends.

    Pretty styles (and patterns ending in ``/``) give pages a trailing
    slash; everything else keeps the output extension.
    """
    pattern = expand_style(style)
    if pattern.endswith("/"):
        return template + "/"
    if pattern.endswith(":output_ext"):
        return template + ":output_ext"
    return template


def compute_url(pattern: str, placeholders: dict[str, str], *, source: str = "") -> str:
    """Expand *pattern* with *placeholders* into a normalized URL path.

    A placeholder name is matched by its longest known prefix, so
    ``:year_:month`` reads as ``:year`` + ``_`` + ``:month``.  Empty segments
    collapse, so ``/:categories/:title`` without categories yields ``/title``.

    Raises:
        ConfigError: If the pattern names an unknown placeholder or the
            result is empty or malformed.

    """
    pattern = expand_style(pattern)
    if not pattern:
        msg = f"{source}: empty permalink"
        raise ConfigError(msg)

    def replace(m: re.Match[str]) -> str:
        name = m.group(1)
        for end in range(len(name), 0, -1):
            key = name[:end]
            if key in placeholders:
                return placeholders[key] + name[end:]
        msg = f"{source}: unknown permalink placeholder ':{name}' in {pattern!r}"
        raise ConfigError(msg)

    expanded = _PLACEHOLDER_RE.sub(replace, pattern).strip()
    if not expanded:
        msg = f"{source}: permalink {pattern!r} produced an empty URL"
        raise ConfigError(msg)
    url = _MULTI_SLASH_RE.sub("/", "/" + expanded.lstrip("/"))
    if ".." in url.split("/") or any(c in url for c in "?#\\"):
        msg = f"{source}: permalink {pattern!r} produced a malformed URL {url!r}"
        raise ConfigError(msg)
    return url
