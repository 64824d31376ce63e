"""Observability — structured events recorded while loading, rendering and building.

Quick Start:
    >>> from tabby.observability import EventLog
    >>> log = EventLog()
    >>> site = Site.load(".", event_log=log)
    >>> log.stats()["by_type"]
    {'SiteLoaded': 1}

"""

from tabby.observability.events import (
    BuildEvent,
    DocumentRendered,
    RendererInitialized,
    SiteEvent,
    SiteLoaded,
    now_ns,
)
from tabby.observability.log import EventLog

__all__ = [
    "BuildEvent",
    "DocumentRendered",
    "EventLog",
    "RendererInitialized",
    "SiteEvent",
    "SiteLoaded",
    "now_ns",
]
