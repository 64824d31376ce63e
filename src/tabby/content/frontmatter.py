"""Front matter — the YAML header of a page or layout.

A file has front matter when its first line is exactly ``---``.  The
header runs to the next ``---`` (or ``...``) line and must be a YAML
mapping; an empty header is an empty mapping.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from tabby._errors import ContentError

_OPEN = "---"
_CLOSE = ("---", "...")


def has_front_matter(path: Path) -> bool:
    """Return True if the file at *path* starts with a front matter fence."""
    with path.open("rb") as fh:
        head = fh.read(5)
    return head.rstrip(b"\r\n") == b"---" or head[:4] in (b"---\n", b"---\r")


def split_front_matter(text: str, *, source: str = "<string>") -> tuple[dict[str, Any], str, int]:
    """Split *text* into ``(variables, body, body_line)``.

    ``body_line`` is the 1-based line number where the body starts, so
    template errors can point at the right line of the source file.
    Text without front matter returns ``({}, text, 1)``.

    Raises:
        ContentError: If the header is unterminated, not valid YAML, or
            not a mapping.

    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != _OPEN:
        return {}, text, 1

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r\n") in _CLOSE:
            header = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            return _parse_header(header, source), body, index + 2

    msg = f"{source}: unterminated front matter"
    raise ContentError(msg)


def read_front_matter(path: Path) -> tuple[dict[str, Any], str, int]:
    """Read *path* and split it with :func:`split_front_matter`."""
    text = path.read_text(encoding="utf-8")
    return split_front_matter(text, source=str(path))


def _parse_header(header: str, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as exc:
        msg = f"{source}: invalid front matter: {exc}"
        raise ContentError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{source}: front matter must be a mapping, got {type(data).__name__}"
        raise ContentError(msg)
    return data
