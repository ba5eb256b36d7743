"""
Domain models for the Blogger import.

:mod:`blogger_import.models.feed` holds the parsed export (``Feed`` and its
``Entry`` items); :mod:`blogger_import.models.documents` holds the records
written to the content store.
"""

from .documents import (
    ACCESS_WRITER,
    ArticleDoc,
    ContentDoc,
    MediaDescriptor,
    PageDoc,
    TopicStub,
    UserStub,
)
from .feed import (
    BLOGGER_SCHEMA_PREFIX,
    KIND_PAGE,
    KIND_POST,
    Category,
    Entry,
    Feed,
    Link,
    is_schema_term,
)

__all__ = [
    "ACCESS_WRITER",
    "ArticleDoc",
    "ContentDoc",
    "MediaDescriptor",
    "PageDoc",
    "TopicStub",
    "UserStub",
    "BLOGGER_SCHEMA_PREFIX",
    "KIND_PAGE",
    "KIND_POST",
    "Category",
    "Entry",
    "Feed",
    "Link",
    "is_schema_term",
]
