"""Site router — serves a site's routes through chirp.

``SiteRouter`` is chirp middleware: every GET/HEAD request is resolved
with ``Site.url_page``.  Pages are rendered on demand (the first request
initializes the renderer manager); static files are read from the
source tree.  Misses fall through to the next handler.
"""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from chirp.http.response import Response

from tabby.export.static import SiteExporter

if TYPE_CHECKING:
    from chirp.http.request import Request
    from chirp.middleware.protocol import AnyResponse, Next

    from tabby.content.document import Document
    from tabby.site import Site


def content_type_for(doc: Document) -> str:
    """Guess a Content-Type from the file name the document is exported to."""
    name = SiteExporter.url_to_filepath(doc.url, PurePosixPath("/"), static=doc.is_static).name
    content_type, _ = mimetypes.guess_type(name)
    if content_type is None:
        return "application/octet-stream"
    if content_type.startswith("text/"):
        return content_type + "; charset=utf-8"
    return content_type


class SiteRouter:
    """Middleware that answers requests from a site's route table.

    Args:
        site: A Site whose ``read()`` has completed.
        cache_control: Value of the ``Cache-Control`` response header.

    """

    __slots__ = ("_cache_control", "_site")

    def __init__(self, site: Site, *, cache_control: str = "no-cache") -> None:
        self._site = site
        self._cache_control = cache_control

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a route or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        doc = self._site.url_page(path)
        if doc is None:
            # "/about" -> "/about/" when only the slashed form is routed
            if not path.endswith("/") and self._site.url_page(path + "/") is not None:
                return Response(body="", status=301).with_header("Location", path + "/")
            return await next(request)

        body = await asyncio.to_thread(self._site.render_document, doc)
        return (
            Response(body=body, content_type=content_type_for(doc), status=200)
            .with_header("Content-Length", str(len(body)))
            .with_header("Cache-Control", self._cache_control)
        )
