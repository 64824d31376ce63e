"""Startup banner — what was loaded, and where it goes.

Summarizes a loaded site on stderr before a build or a server starts:
document counts per collection, route count, source and theme, then the
output directory (build) or the local URL (serve).  Colour is dropped
for ``NO_COLOR``, ``TERM=dumb`` and non-tty streams.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from tabby.site import Site


@dataclass(frozen=True, slots=True)
class _Palette:
    reset: str = ""
    bold: str = ""
    dim: str = ""
    accent: str = ""
    warn: str = ""

    @classmethod
    def for_stream(cls, stream: TextIO) -> _Palette:
        if os.environ.get("NO_COLOR") or os.environ.get("TERM") == "dumb":
            return cls()
        if not (hasattr(stream, "isatty") and stream.isatty()):
            return cls()
        return cls(
            reset="\033[0m",
            bold="\033[1m",
            dim="\033[2m",
            accent="\033[38;5;214m",
            warn="\033[33m",
        )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _branches(items: list[str], p: _Palette) -> list[str]:
    """Prefix *items* with tree glyphs, the last one closing the tree."""
    return [
        f"  {p.dim}{'└─' if i == len(items) - 1 else '├─'}{p.reset} {item}"
        for i, item in enumerate(items)
    ]


def _collection_summary(site: Site) -> str:
    parts = [_plural(len(site.non_collection_pages), "page")]
    parts.extend(
        f"{c.name}: {len(c)}" for c in site.collections if len(c) or c.name == "posts"
    )
    return ", ".join(parts)


def print_banner(
    site: Site,
    mode: str,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the startup banner for *site* to stderr.

    Args:
        site: The loaded site.
        mode: ``"build"`` or ``"serve"``.
        load_ms: Time spent loading the site in milliseconds.
        warnings: Messages listed under the summary.

    """
    from tabby import __version__

    stream = sys.stderr
    p = _Palette.for_stream(stream)
    config = site.config

    timing = f" {p.dim}in {load_ms:.0f}ms{p.reset}" if load_ms > 0 else ""
    items = [
        f"{_plural(len(site.documents), 'document')} read{timing}",
        _collection_summary(site),
        _plural(len(site.routes), "route"),
        f"source: {p.dim}{site.source_dir}{p.reset}",
    ]
    if site.theme_dir is not None:
        items.append(f"theme: {p.dim}{site.theme_dir}{p.reset}")
    if mode == "build":
        items.append(f"output: {p.dim}{site.dest_dir}{p.reset}")

    lines = [
        "",
        f"  {p.accent}{p.bold}tabby{p.reset} {p.dim}v{__version__}{p.reset}  [{mode}]",
        f"  {p.dim}{'─' * 43}{p.reset}",
        *_branches(items, p),
    ]
    if mode == "serve":
        lines += ["", f"  {p.bold}http://{config.host}:{config.port}{config.baseurl}{p.reset}"]
    if warnings:
        lines.append("")
        lines.extend(f"  {p.warn}!{p.reset} {w}" for w in warnings)
    lines.append("")

    print("\n".join(lines), file=stream)
