"""Tests for tabby.content.document — pages, static files and their URLs."""

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from tabby._errors import ContentError
from tabby.content.document import Page, StaticFile, coerce_date, parse_post_name


class TestParsePostName:
    def test_dated(self) -> None:
        assert parse_post_name("2020-01-02-hello-world") == (date(2020, 1, 2), "hello-world")

    def test_undated(self) -> None:
        assert parse_post_name("hello") == (None, "hello")

    def test_invalid_date(self) -> None:
        assert parse_post_name("2020-13-40-oops") == (None, "2020-13-40-oops")


class TestCoerceDate:
    def test_date(self) -> None:
        assert coerce_date(date(2020, 1, 2), source="x") == datetime(2020, 1, 2)

    def test_string(self) -> None:
        assert coerce_date("2020-01-02 10:30:00", source="x") == datetime(2020, 1, 2, 10, 30)

    def test_offset_converted_to_naive_local(self) -> None:
        aware = datetime(2020, 1, 2, 10, tzinfo=timezone(timedelta(hours=1)))
        result = coerce_date(aware, source="x")
        assert result.tzinfo is None
        assert result == aware.astimezone().replace(tzinfo=None)
        assert coerce_date("2020-01-02T10:00:00+01:00", source="x") == result

    def test_invalid(self) -> None:
        with pytest.raises(ContentError, match="invalid date"):
            coerce_date("yesterday", source="x")


class TestStaticFile:
    def test_url_is_source_path(self) -> None:
        doc = StaticFile(Path("/src/assets/site.css"), "assets/site.css")
        assert doc.url == "/assets/site.css"
        assert doc.is_static
        assert doc.collection is None

    def test_collection_static_file(self) -> None:
        doc = StaticFile(None, "_recipes/img/pie.png", collection="recipes")
        assert doc.url == "/recipes/img/pie.png"

    def test_drop(self) -> None:
        drop = StaticFile(None, "assets/site.css").to_drop()
        assert drop["path"] == "assets/site.css"
        assert drop["name"] == "site.css"
        assert drop["extname"] == ".css"
        assert drop["basename"] == "site"


class TestPage:
    def test_markdown_output_ext(self) -> None:
        page = Page(None, "about.md", {}, permalink="/:path/:basename:output_ext")
        assert page.is_markdown
        assert page.output_ext == ".html"
        assert page.url == "/about.html"

    def test_nested_page_path(self) -> None:
        page = Page(None, "docs/intro.md", {}, permalink="/:path/:basename/")
        assert page.url == "/docs/intro/"

    def test_front_matter_permalink_wins(self) -> None:
        page = Page(None, "about.md", {"permalink": "/company/"}, permalink="/:basename/")
        assert page.url == "/company/"

    def test_post_date_from_name(self) -> None:
        page = Page(
            None, "_posts/2020-01-02-hello.md", {}, permalink="date", collection="posts",
        )
        assert page.date == datetime(2020, 1, 2)
        assert page.slug == "hello"
        assert page.url == "/2020/01/02/hello.html"

    def test_post_front_matter_date_wins(self) -> None:
        page = Page(
            None,
            "_posts/2020-01-02-hello.md",
            {"date": "2021-03-04"},
            permalink="pretty",
            collection="posts",
        )
        assert page.url == "/2021/03/04/hello/"

    def test_categories(self) -> None:
        page = Page(
            None,
            "_posts/2020-01-02-hello.md",
            {"category": "News", "categories": ["Tech", "news"]},
            permalink="date",
            collection="posts",
        )
        assert page.categories == ["News", "Tech", "news"]
        assert page.url == "/news/tech/2020/01/02/hello.html"

    def test_slug_front_matter(self) -> None:
        page = Page(
            None,
            "_posts/2020-01-02-hello.md",
            {"slug": "Greetings All"},
            permalink="/:slug/",
            collection="posts",
        )
        assert page.url == "/greetings-all/"

    def test_collection_path_placeholder(self) -> None:
        page = Page(
            None,
            "_recipes/pies/apple.md",
            {},
            permalink="/:collection/:path:output_ext",
            collection="recipes",
        )
        assert page.url == "/recipes/pies/apple.html"
        assert page.collection_rel_path() == "pies/apple.md"

    def test_fallback_date(self) -> None:
        when = datetime(2019, 5, 6)
        page = Page(
            None, "_drafts/idea.md", {}, permalink="date", collection="posts", fallback_date=when,
        )
        assert page.date == when
        assert page.url == "/2019/05/06/idea.html"

    def test_layout_and_published(self) -> None:
        page = Page(None, "a.md", {"layout": "post", "published": False}, permalink="/:basename/")
        assert page.layout == "post"
        assert page.published is False

    def test_post_drop(self) -> None:
        page = Page(
            None,
            "_posts/2020-01-02-hello-world.md",
            {"tags": "a b"},
            permalink="date",
            collection="posts",
        )
        drop = page.to_drop()
        assert drop["title"] == "Hello world"
        assert drop["url"] == "/2020/01/02/hello-world.html"
        assert drop["date"] == datetime(2020, 1, 2)
        assert drop["tags"] == ["a", "b"]
        assert drop["collection"] == "posts"

    def test_page_drop_has_no_default_title(self) -> None:
        drop = Page(None, "about.md", {}, permalink="/:basename/").to_drop()
        assert "title" not in drop

    def test_drop_is_a_copy(self) -> None:
        page = Page(None, "about.md", {"title": "About"}, permalink="/:basename/")
        page.to_drop()["title"] = "Changed"
        assert page.front_matter["title"] == "About"
