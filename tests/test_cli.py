"""Tests for tabby._cli — argument parsing and command dispatch."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tabby._cli import _build_parser, _flags, main


class TestBuildParser:
    """_build_parser — CLI argument parsing."""

    def test_build_defaults(self) -> None:
        args = _build_parser().parse_args(["build"])
        assert args.command == "build"
        assert args.source == "."
        assert args.destination is None
        assert args.dry_run is False
        assert args.drafts is None

    def test_build_alias_and_dry_run(self) -> None:
        args = _build_parser().parse_args(["b", "-n"])
        assert args.command == "b"
        assert args.dry_run is True

    def test_global_flags(self) -> None:
        args = _build_parser().parse_args(
            ["--source", "site", "--destination", "out", "--drafts", "--future", "build"],
        )
        flags = _flags(args)
        assert flags.source == Path("site")
        assert flags.destination == Path("out")
        assert flags.drafts is True
        assert flags.future is True
        assert flags.unpublished is None

    def test_serve_host_port(self) -> None:
        args = _build_parser().parse_args(["serve", "--host", "0.0.0.0", "--port", "8080"])
        flags = _flags(args)
        assert flags.host == "0.0.0.0"
        assert flags.port == 8080

    @pytest.mark.parametrize("alias", ["s", "server"])
    def test_serve_aliases(self, alias: str) -> None:
        assert _build_parser().parse_args([alias]).command == alias

    def test_render_and_data_take_path(self) -> None:
        assert _build_parser().parse_args(["render", "/about/"]).path == "/about/"
        assert _build_parser().parse_args(["data", "about.md"]).path == "about.md"

    def test_routes_dynamic(self) -> None:
        assert _build_parser().parse_args(["routes", "--dynamic"]).dynamic is True


class TestMain:
    """main — command dispatch against a real site."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as info:
            main([])
        assert info.value.code == 0
        assert "usage" in capsys.readouterr().out

    def test_routes(self, blog_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (blog_site / "robots.txt").write_text("User-agent: *\n")
        main(["--source", str(blog_site), "routes"])
        out = capsys.readouterr().out
        assert "/about/ -> about.md" in out
        assert "/blog/2020/01/01/hi/ -> _posts/2020-01-01-hi.md" in out
        assert "/robots.txt -> robots.txt" in out

    def test_routes_dynamic(self, blog_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (blog_site / "robots.txt").write_text("User-agent: *\n")
        main(["--source", str(blog_site), "routes", "--dynamic"])
        assert "robots.txt" not in capsys.readouterr().out

    def test_data_by_url(self, blog_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--source", str(blog_site), "data", "/blog/2020/01/01/hi/"])
        data = json.loads(capsys.readouterr().out)
        assert data["title"] == "Hi"
        assert data["date"] == "2020-01-01T00:00:00"
        assert data["path"] == "_posts/2020-01-01-hi.md"

    def test_data_by_file(self, blog_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--source", str(blog_site), "data", "about.md"])
        assert json.loads(capsys.readouterr().out)["url"] == "/about/"

    def test_render_static(self, blog_site: Path, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
        (blog_site / "robots.txt").write_text("User-agent: *\n")
        main(["--source", str(blog_site), "render", "/robots.txt"])
        assert capsysbinary.readouterr().out == b"User-agent: *\n"

    def test_missing_page_exits_1(
        self, blog_site: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        with pytest.raises(SystemExit) as info:
            main(["--source", str(blog_site), "data", "/nope/"])
        assert info.value.code == 1
        assert "no page at '/nope/'" in capsys.readouterr().err

    def test_config_error_exits_1(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        (tmp_path / "_config.yml").write_text("exclude: {a: 1}\n")
        with pytest.raises(SystemExit) as info:
            main(["--source", str(tmp_path), "routes"])
        assert info.value.code == 1
        assert "must be a list" in capsys.readouterr().err

    def test_build(self, blog_site: Path, capsys: pytest.CaptureFixture[str]) -> None:
        main(["--source", str(blog_site), "build", "--dry-run"])
        err = capsys.readouterr().err
        assert "Would write 3 pages" in err
        assert not (blog_site / "_site").exists()
