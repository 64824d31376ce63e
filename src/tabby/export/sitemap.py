"""``sitemap.xml`` for the ``jekyll-sitemap`` plugin.

Every exported HTML page is listed under the site ``url`` and
``baseurl``.  Posts carry their date as ``lastmod``; other pages carry
the build date.  Pages whose front matter sets ``sitemap: false`` are
left out.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING
from xml.etree.ElementTree import Element, SubElement, tostring

if TYPE_CHECKING:
    from tabby.export.static import ExportedFile

_SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
_XML_DECL = '<?xml version="1.0" encoding="UTF-8"?>\n'


@dataclass(frozen=True, slots=True)
class SitemapEntry:
    """One ``<url>`` element."""

    loc: str
    lastmod: date


def sitemap_entries(
    files: Iterable[ExportedFile],
    site_url: str,
    *,
    baseurl: str = "",
    lastmod: Mapping[str, date] | None = None,
    exclude: Collection[str] = (),
) -> list[SitemapEntry]:
    """Entries for the rendered HTML pages among *files*.

    Args:
        files: Exported file records.
        site_url: Absolute site URL (``url`` in ``_config.yml``).
        baseurl: Path prefix the site is served under.
        lastmod: URL path -> modification date; defaults to today.
        exclude: URL paths to leave out.

    """
    prefix = site_url.rstrip("/") + baseurl.rstrip("/")
    today = datetime.now(timezone.utc).date()
    dates = lastmod or {}
    return [
        SitemapEntry(loc=prefix + f.url, lastmod=dates.get(f.url, today))
        for f in files
        if f.source_type == "page"
        and f.output_path.suffix == ".html"
        and f.url not in exclude
    ]


def generate_sitemap(entries: Iterable[SitemapEntry]) -> str:
    """Serialize *entries* as a sitemap XML document."""
    urlset = Element("urlset", xmlns=_SITEMAP_NS)
    for entry in entries:
        url = SubElement(urlset, "url")
        SubElement(url, "loc").text = entry.loc
        SubElement(url, "lastmod").text = entry.lastmod.isoformat()
    return _XML_DECL + tostring(urlset, encoding="unicode") + "\n"


def write_sitemap(
    files: Iterable[ExportedFile],
    output_dir: Path,
    *,
    site_url: str,
    baseurl: str = "",
    lastmod: Mapping[str, date] | None = None,
    exclude: Collection[str] = (),
) -> ExportedFile | None:
    """Write ``output_dir/sitemap.xml``.

    Returns *None*, with a note on stderr, when *site_url* is empty:
    sitemap locations must be absolute.
    """
    from tabby.export.static import ExportedFile

    if not site_url:
        print("  Sitemap skipped: set url in _config.yml to enable it", file=sys.stderr)
        return None

    t0 = time.perf_counter()
    entries = sitemap_entries(
        files, site_url, baseurl=baseurl, lastmod=lastmod, exclude=exclude,
    )
    data = generate_sitemap(entries).encode("utf-8")
    path = output_dir / "sitemap.xml"
    path.write_bytes(data)
    return ExportedFile(
        url="/sitemap.xml",
        output_path=path,
        source_type="sitemap",
        size_bytes=len(data),
        duration_ms=(time.perf_counter() - t0) * 1000,
    )
