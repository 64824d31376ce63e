"""Tests for tabby.content.router — serving a site through chirp."""

from __future__ import annotations

from pathlib import Path

import pytest
from chirp import App
from chirp.testing import TestClient

from tabby.content.document import Page, StaticFile
from tabby.content.router import SiteRouter, content_type_for
from tabby.site import Site

from .conftest import CountingFactory, make_site

_FILES = {
    "index.md": "---\n---\n# Home\n",
    "about.md": "---\n---\nAbout\n",
    "docs/index.md": "---\n---\nDocs\n",
    "css/site.css": "body {}\n",
}


def _app(site: Site, **kwargs: object) -> App:
    app = App()
    app.add_middleware(SiteRouter(site, **kwargs))  # type: ignore[arg-type]

    @app.route("/api", methods=["GET", "POST"])
    def api():
        return "api"

    @app.route("/about.html", methods=["POST"])
    def post_about():
        return ("posted", 201)

    return app


class TestContentType:
    def test_page(self) -> None:
        page = Page(None, "about.md", {}, permalink="/:basename/")
        assert content_type_for(page) == "text/html; charset=utf-8"

    def test_static(self) -> None:
        assert content_type_for(StaticFile(None, "css/site.css")).startswith("text/css")
        assert content_type_for(StaticFile(None, "img/logo.png")) == "image/png"

    def test_unknown(self) -> None:
        assert content_type_for(StaticFile(None, "CNAME")) == "application/octet-stream"


class TestSiteRouter:
    @pytest.mark.asyncio
    async def test_serves_page(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site)) as client:
            response = await client.get("/about.html")
            assert response.status == 200
            assert response.text == "<p>/about.html</p>"
            assert "text/html" in response.content_type

    @pytest.mark.asyncio
    async def test_url_fallbacks(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site)) as client:
            assert (await client.get("/about")).text == "<p>/about.html</p>"
            assert (await client.get("/")).text == "<p>/</p>"

    @pytest.mark.asyncio
    async def test_serves_static_file(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site)) as client:
            response = await client.get("/css/site.css")
            assert response.status == 200
            assert "text/css" in response.content_type
            assert response.text == "body {}\n"

    @pytest.mark.asyncio
    async def test_redirects_to_slash(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site)) as client:
            response = await client.get("/docs")
            assert response.status == 301
            assert ("location", "/docs/") in response.headers

    @pytest.mark.asyncio
    async def test_miss_falls_through(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site)) as client:
            assert (await client.get("/api")).text == "api"
            assert (await client.get("/missing/")).status == 404

    @pytest.mark.asyncio
    async def test_post_falls_through(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site)) as client:
            response = await client.post("/about.html")
            assert response.status == 201

    @pytest.mark.asyncio
    async def test_cache_control(self, tmp_path: Path) -> None:
        site = make_site(tmp_path, _FILES)
        async with TestClient(_app(site, cache_control="max-age=60")) as client:
            response = await client.get("/css/site.css")
            assert ("cache-control", "max-age=60") in response.headers

    @pytest.mark.asyncio
    async def test_renderer_initialized_once(self, tmp_path: Path) -> None:
        import asyncio

        factory = CountingFactory(delay=0.02)
        site = make_site(tmp_path, _FILES, renderer_factory=factory)
        async with TestClient(_app(site)) as client:
            responses = await asyncio.gather(
                *(client.get(url) for url in ("/", "/about.html", "/docs/") * 3)
            )
        assert all(r.status == 200 for r in responses)
        assert factory.calls == 1
