"""Tests for tabby.observability — event model and event log."""

import threading

from tabby.observability import (
    BuildEvent,
    DocumentRendered,
    EventLog,
    RendererInitialized,
    SiteLoaded,
    now_ns,
)


def _build(source: str, kind: str = "render") -> BuildEvent:
    return BuildEvent(
        kind=kind,  # type: ignore[arg-type]
        source=source, target=f"/out/{source}", duration_ms=0.1, timestamp_ns=now_ns(),
    )


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """Tests for the event log store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        assert len(log) == 0
        log.append(_build("a.md"))
        assert len(log) == 1

    def test_max_events_enforced(self) -> None:
        log = EventLog(max_events=5)
        for i in range(10):
            log.append(_build(f"{i}.md"))
        assert len(log) == 5
        assert [e.source for e in log.recent(2)] == ["8.md", "9.md"]

    def test_query_by_type_newest_first(self) -> None:
        log = EventLog()
        log.append(_build("a.md"))
        log.append(RendererInitialized(
            plugins=("jekyll-avatar",), ok=True, error="", duration_ms=1.0, timestamp_ns=now_ns(),
        ))
        log.append(_build("b.md"))
        builds = log.query(event_type=BuildEvent)
        assert [e.source for e in builds] == ["b.md", "a.md"]

    def test_query_by_path_and_limit(self) -> None:
        log = EventLog()
        for name in ("docs/a.md", "docs/b.md", "about.md"):
            log.append(_build(name))
        assert len(log.query(path="docs/")) == 2
        assert len(log.query(limit=1)) == 1

    def test_query_since(self) -> None:
        log = EventLog()
        log.append(_build("old.md"))
        cutoff = now_ns()
        log.append(_build("new.md"))
        assert [e.source for e in log.query(since_ns=cutoff)] == ["new.md"]

    def test_clear(self) -> None:
        log = EventLog()
        log.append(_build("a.md"))
        assert log.clear() == 1
        assert len(log) == 0

    def test_stats(self) -> None:
        log = EventLog(max_events=50)
        log.append(_build("a.md"))
        log.append(SiteLoaded(
            source="/site", documents=3, routes=3, collections=1, load_ms=2.0,
            timestamp_ns=now_ns(),
        ))
        stats = log.stats()
        assert stats["total"] == 2
        assert stats["max_events"] == 50
        assert stats["by_type"] == {"BuildEvent": 1, "SiteLoaded": 1}

    def test_thread_safety(self) -> None:
        log = EventLog()

        def writer(prefix: str) -> None:
            for i in range(200):
                log.append(_build(f"{prefix}{i}.md"))

        threads = [threading.Thread(target=writer, args=(str(n),)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(log) == 800

    def test_query_by_url(self) -> None:
        log = EventLog()
        log.append(DocumentRendered(
            url="/blog/hi/", source="_posts/2020-01-01-hi.md", size_bytes=10,
            duration_ms=1.0, timestamp_ns=now_ns(),
        ))
        log.append(_build("about.md"))
        assert [type(e).__name__ for e in log.query(path="/blog/")] == ["DocumentRendered"]
        assert len(log.query(path="hi.md")) == 1

    def test_total_ms(self) -> None:
        log = EventLog()
        log.append(_build("a.md"))
        log.append(_build("b.md"))
        log.append(RendererInitialized(
            plugins=(), ok=True, error="", duration_ms=5.0, timestamp_ns=now_ns(),
        ))
        assert log.total_ms(BuildEvent) == 0.2
        assert log.total_ms(RendererInitialized) == 5.0
        assert log.total_ms(DocumentRendered) == 0
