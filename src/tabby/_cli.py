"""Tabby CLI — tabby build / serve / routes / render / data.

Entry point for the ``tabby`` command-line interface.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tabby._errors import TabbyError

if TYPE_CHECKING:
    from tabby.config import Flags
    from tabby.content.document import Document
    from tabby.site import Site


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tabby CLI."""
    parser = argparse.ArgumentParser(
        prog="tabby",
        description="Jekyll-compatible static site generator.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument("--source", default=".", help="Source directory")
    parser.add_argument("--destination", default=None, help="Destination directory")
    parser.add_argument("--drafts", action="store_true", default=None, help="Render drafts")
    parser.add_argument(
        "--future", action="store_true", default=None, help="Publish future-dated posts",
    )
    parser.add_argument(
        "--unpublished", action="store_true", default=None,
        help="Render documents marked published: false",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    build_parser = subparsers.add_parser("build", aliases=["b"], help="Build your site")
    build_parser.add_argument("-n", "--dry-run", action="store_true", help="Dry run")

    serve_parser = subparsers.add_parser(
        "serve", aliases=["s", "server"], help="Serve your site locally",
    )
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")

    routes_parser = subparsers.add_parser(
        "routes", help="Display site permalinks and associated files",
    )
    routes_parser.add_argument(
        "--dynamic", action="store_true", help="Only show routes to non-static files",
    )

    render_parser = subparsers.add_parser("render", help="Render a file or URL path")
    render_parser.add_argument("path", help="URL path (/...) or source-relative file")

    data_parser = subparsers.add_parser("data", help="Print a file or URL path's variables")
    data_parser.add_argument("path", help="URL path (/...) or source-relative file")

    return parser


def _get_version() -> str:
    """Get the package version."""
    from tabby import __version__

    return __version__


def _flags(args: argparse.Namespace) -> Flags:
    from tabby.config import Flags

    return Flags(
        source=Path(args.source),
        destination=Path(args.destination) if args.destination else None,
        drafts=args.drafts,
        future=args.future,
        unpublished=args.unpublished,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
    )


def _resolve(site: Site, path: str) -> Document:
    """Find a document by URL path (leading ``/``) or source-relative file."""
    doc = site.url_page(path) if path.startswith("/") else site.file_path_page(path)
    if doc is None:
        msg = f"no page at {path!r}"
        raise TabbyError(msg)
    return doc


def _json_default(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def routes_command(site: Site, *, dynamic: bool = False) -> None:
    """Print ``url -> source`` for every route, sorted by URL."""
    print("\nRoutes:")
    for url in sorted(site.routes):
        doc = site.routes[url]
        if dynamic and doc.is_static:
            continue
        print(f"  {url} -> {doc.rel_path}")


def render_command(site: Site, path: str) -> None:
    """Write the rendered output of one document to stdout."""
    doc = _resolve(site, path)
    sys.stdout.buffer.write(site.render_document(doc))
    sys.stdout.flush()


def data_command(site: Site, path: str) -> None:
    """Print the template variables of one document as JSON."""
    doc = _resolve(site, path)
    print(json.dumps(doc.to_drop(), indent=2, default=_json_default, sort_keys=True))


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from tabby.app import build, load_site, serve

    flags = _flags(args)
    try:
        if args.command in ("build", "b"):
            build(flags.source or ".", flags, dry_run=args.dry_run)
        elif args.command in ("serve", "s", "server"):
            serve(flags.source or ".", flags)
        else:
            site, _ = load_site(flags.source or ".", flags)
            if args.command == "routes":
                routes_command(site, dynamic=args.dynamic)
            elif args.command == "render":
                render_command(site, args.path)
            elif args.command == "data":
                data_command(site, args.path)
    except TabbyError as exc:
        print(f"tabby: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
