"""Tabby application entry points — build and serve.

Both load a Site in a single synchronous phase, print the banner, and
hand the loaded site to the exporter (build) or to a chirp app running
on pounce (serve).
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from tabby.config import Flags
from tabby.site import Site

if TYPE_CHECKING:
    from chirp import App

    from tabby.export.static import ExportResult


def load_site(root: str | Path = ".", flags: Flags | None = None) -> tuple[Site, float]:
    """Load the site at *root*.  Returns the site and the load time in ms."""
    t0 = time.perf_counter()
    site = Site.load(root, flags)
    return site, (time.perf_counter() - t0) * 1000


def build(root: str | Path = ".", flags: Flags | None = None, *, dry_run: bool = False) -> ExportResult:
    """Render the site to its destination directory.

    Args:
        root: Path to the site source directory.
        flags: Command-line overrides.
        dry_run: Compute the output file list without writing anything.

    """
    from tabby.banner import print_banner
    from tabby.export.static import SiteExporter

    site, load_ms = load_site(root, flags)
    print_banner(site, mode="build", load_ms=load_ms)

    result = SiteExporter(site).export(dry_run=dry_run)
    _print_export_summary(result)
    return result


def _print_export_summary(result: ExportResult) -> None:
    """Print export completion summary to stderr."""
    verb = "Would write" if result.dry_run else "Wrote"
    lines = [
        "",
        "─" * 41,
        f"  {verb} {result.total_pages} page{'s' if result.total_pages != 1 else ''}",
    ]
    if result.total_static > 0:
        lines.append(
            f"  Copied {result.total_static} file{'s' if result.total_static != 1 else ''}"
        )
    lines.append(f"  Output: {result.output_dir}")
    lines.append(f"  Done in {result.duration_ms:.0f}ms")

    print("\n".join(lines), file=sys.stderr)


def create_app(site: Site) -> App:
    """Create a chirp App that serves *site*'s routes."""
    from chirp import App, AppConfig

    from tabby.content.router import SiteRouter

    config = site.config
    app = App(config=AppConfig(template_dir=site.source_dir, host=config.host, port=config.port))
    app.add_middleware(SiteRouter(site))
    return app


def serve(root: str | Path = ".", flags: Flags | None = None) -> None:
    """Serve the site, rendering pages on request.

    Runs the chirp app on a single pounce worker; the site model and its
    renderer are shared by every request.

    The site URL is pointed at the local server before the first request,
    so ``absolute_url`` links resolve to it.

    """
    from tabby.banner import print_banner

    site, load_ms = load_site(root, flags)
    config = site.config
    site.set_absolute_url(f"http://{config.host}:{config.port}")

    app = create_app(site)
    print_banner(site, mode="serve", load_ms=load_ms)

    from pounce.config import ServerConfig
    from pounce.server import Server

    server = Server(ServerConfig(host=config.host, port=config.port, workers=1), app)
    server.run()
