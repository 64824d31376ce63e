"""Content layer — documents, collections, permalinks and exclusion rules.

The chirp-backed ``SiteRouter`` lives in ``tabby.content.router`` and is
imported from there so that loading a site does not require chirp.
"""

from tabby.content.collection import Collection
from tabby.content.document import Document, Page, StaticFile
from tabby.content.exclude import ExclusionPolicy
from tabby.content.permalink import compute_url

__all__ = [
    "Collection",
    "Document",
    "ExclusionPolicy",
    "Page",
    "StaticFile",
    "compute_url",
]
