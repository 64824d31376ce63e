"""Static export — write every route of a site to the destination directory.

Pages are rendered through the site's renderer manager; static files are
copied verbatim.  The destination is cleaned first, except for the
entries listed in ``keep_files``.
"""

from __future__ import annotations

import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from tabby._errors import ExportError, TabbyError
from tabby.observability.events import BuildEvent, now_ns

if TYPE_CHECKING:
    from datetime import date

    from tabby.content.document import Document
    from tabby.observability.log import EventLog
    from tabby.site import Site


@dataclass(frozen=True, slots=True)
class ExportedFile:
    """Record of a single file written during export.

    Attributes:
        url: URL path the file is served at (e.g., ``"/about/"``).
        output_path: Absolute filesystem path to the written file.
        source_type: Category of the exported file.
        size_bytes: Size of the written file in bytes.
        duration_ms: Time taken to render and write this file.

    """

    url: str
    output_path: Path
    source_type: Literal["page", "static", "sitemap"]
    size_bytes: int
    duration_ms: float


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Aggregate result of a full static export.

    Attributes:
        files: All files written (or, on a dry run, that would be written).
        total_pages: Number of rendered pages.
        total_static: Number of static files copied.
        duration_ms: Total wall-clock time for the export.
        output_dir: Absolute path to the output directory.
        dry_run: True if nothing was written.

    """

    files: tuple[ExportedFile, ...]
    total_pages: int
    total_static: int
    duration_ms: float
    output_dir: Path
    dry_run: bool = False


class SiteExporter:
    """Exports a loaded site as static files.

    Args:
        site: A Site whose ``read()`` has completed.
        event_log: Optional log receiving one ``BuildEvent`` per file.

    """

    def __init__(self, site: Site, *, event_log: EventLog | None = None) -> None:
        self._site = site
        self._event_log = event_log

    def export(self, *, dry_run: bool = False) -> ExportResult:
        """Run the full export pipeline and return the result.

        Pipeline order:
            1. Clean the output directory (keeping ``keep_files``)
            2. Render pages and copy static files, one per route
            3. Generate ``sitemap.xml`` (with the ``jekyll-sitemap`` plugin)

        Raises:
            ExportError: If any step of the pipeline fails, or if the
                destination is the source directory or one of its parents.

        """
        start = time.perf_counter()
        output_dir = self._site.dest_dir
        self._check_destination(output_dir)

        if not dry_run:
            self._clean_output(output_dir)

        all_files: list[ExportedFile] = []
        for url, doc in sorted(self._site.routes.items()):
            all_files.append(self._write_document(url, doc, output_dir, dry_run=dry_run))

        if not dry_run and "jekyll-sitemap" in self._site.config.plugins:
            sitemap = self._write_sitemap(all_files, output_dir)
            if sitemap is not None:
                all_files.append(sitemap)
                self._record("sitemap", "/sitemap.xml", sitemap.output_path, sitemap.duration_ms)

        elapsed = (time.perf_counter() - start) * 1000
        return ExportResult(
            files=tuple(all_files),
            total_pages=sum(1 for f in all_files if f.source_type == "page"),
            total_static=sum(1 for f in all_files if f.source_type == "static"),
            duration_ms=elapsed,
            output_dir=output_dir,
            dry_run=dry_run,
        )

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _check_destination(self, output_dir: Path) -> None:
        source = self._site.source_dir.resolve()
        dest = output_dir.resolve()
        if dest == source or dest in source.parents:
            msg = f"Destination {dest} would overwrite the source directory {source}"
            raise ExportError(msg)

    def _clean_output(self, output_dir: Path) -> None:
        """Empty the output directory, keeping entries named in ``keep_files``."""
        t0 = time.perf_counter()
        if output_dir.exists():
            for entry in output_dir.iterdir():
                if self._site.keep_file(entry.name):
                    continue
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
        output_dir.mkdir(parents=True, exist_ok=True)
        self._record("clean", str(output_dir), output_dir, (time.perf_counter() - t0) * 1000)

    def _write_document(
        self, url: str, doc: Document, output_dir: Path, *, dry_run: bool,
    ) -> ExportedFile:
        t0 = time.perf_counter()
        filepath = self.url_to_filepath(url, output_dir, static=doc.is_static)
        source_type: Literal["page", "static"] = "static" if doc.is_static else "page"

        size = 0
        if not dry_run:
            try:
                if doc.is_static and doc.source_path is not None:
                    filepath.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(doc.source_path, filepath)
                    size = filepath.stat().st_size
                else:
                    size = self._write_bytes(filepath, self._site.render_document(doc))
            except TabbyError as exc:
                msg = f"Failed to export {url!r} from {doc.rel_path}: {exc}"
                raise ExportError(msg) from exc
            except OSError as exc:
                msg = f"Failed to write {filepath}: {exc}"
                raise ExportError(msg) from exc

        elapsed = (time.perf_counter() - t0) * 1000
        self._record("copy" if doc.is_static else "render", doc.rel_path, filepath, elapsed)
        return ExportedFile(
            url=url,
            output_path=filepath,
            source_type=source_type,
            size_bytes=size,
            duration_ms=elapsed,
        )

    def _write_sitemap(self, files: list[ExportedFile], output_dir: Path) -> ExportedFile | None:
        from tabby.export.sitemap import write_sitemap

        lastmod: dict[str, date] = {}
        hidden: set[str] = set()
        for url, doc in self._site.routes.items():
            if doc.front_matter.get("sitemap") is False:
                hidden.add(url)
            doc_date = getattr(doc, "date", None)
            if doc_date is not None:
                lastmod[url] = doc_date.date()
        config = self._site.config
        return write_sitemap(
            files,
            output_dir,
            site_url=config.absolute_url,
            baseurl=config.baseurl,
            lastmod=lastmod,
            exclude=hidden,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def url_to_filepath(url: str, output_dir: Path, *, static: bool = False) -> Path:
        """Convert a URL path to an output file path.

            ``/``               -> ``output/index.html``
            ``/about/``         -> ``output/about/index.html``
            ``/about.html``     -> ``output/about.html``
            ``/feed``  (page)   -> ``output/feed.html``
            ``/CNAME`` (static) -> ``output/CNAME``

        """
        clean = url.lstrip("/")
        if not clean or clean.endswith("/"):
            return output_dir / clean / "index.html"
        target = output_dir / clean
        if not static and not target.suffix:
            return target.with_name(target.name + ".html")
        return target

    @staticmethod
    def _write_bytes(filepath: Path, data: bytes) -> int:
        """Write *data*, creating parent dirs as needed.  Returns the size."""
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_bytes(data)
        return len(data)

    def _record(
        self,
        kind: Literal["render", "copy", "clean", "sitemap"],
        source: str,
        target: Path,
        duration_ms: float,
    ) -> None:
        if self._event_log is None:
            return
        self._event_log.append(BuildEvent(
            kind=kind,
            source=source,
            target=str(target),
            duration_ms=duration_ms,
            timestamp_ns=now_ns(),
        ))
