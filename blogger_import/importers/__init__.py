"""
Import stages.

This subpackage resolves users and topics against the content store, rewrites
embedded media and imports entries as pages and articles.  Each stage only
talks to the store through the repository protocols.
"""

from .entries import EntryImporter, ImportReport, classify_entries, derive_url
from .media import DEFAULT_HANDLERS, ImageHandler, MediaExtractor, MediaHandler
from .topics import collect_topics, resolve_topics
from .users import distinct_authors, resolve_users

__all__ = [
    "EntryImporter",
    "ImportReport",
    "classify_entries",
    "derive_url",
    "DEFAULT_HANDLERS",
    "ImageHandler",
    "MediaExtractor",
    "MediaHandler",
    "collect_topics",
    "resolve_topics",
    "distinct_authors",
    "resolve_users",
]
