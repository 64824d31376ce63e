"""Site event model.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class SiteLoaded:
    """A site finished reading its source tree.

    Attributes:
        source: Absolute site source directory.
        documents: Number of documents read (output or not).
        routes: Number of entries in the route table.
        collections: Number of collections.
        load_ms: Time spent reading in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    source: str
    documents: int
    routes: int
    collections: int
    load_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RendererInitialized:
    """The renderer manager was constructed and plugin hooks ran.

    Attributes:
        plugins: Names of the plugins whose hook ran.
        ok: False if construction or a hook failed.
        error: Error message when ``ok`` is False.
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    plugins: tuple[str, ...]
    ok: bool
    error: str
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class DocumentRendered:
    """A document was rendered or read for output.

    Attributes:
        url: URL path of the document.
        source: Source path relative to the site root.
        size_bytes: Size of the output in bytes.
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    url: str
    source: str
    size_bytes: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BuildEvent:
    """A build action occurred.

    Attributes:
        kind: The type of build action.
        source: Source path or URL.
        target: Output file path (or description).
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: Literal["render", "copy", "clean", "sitemap"]
    source: str
    target: str
    duration_ms: float
    timestamp_ns: int


type SiteEvent = SiteLoaded | RendererInitialized | DocumentRendered | BuildEvent


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
