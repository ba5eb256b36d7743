"""
Repository interfaces the import pipeline depends on.

Every method raises :class:`~blogger_import.utils.errors.PersistenceError`
when the underlying store fails.
"""

from __future__ import annotations

from typing import Optional, Protocol, Union

from blogger_import.models import ArticleDoc, MediaDescriptor, PageDoc, TopicStub, UserStub


class UserRepository(Protocol):
    def find_user_by_username(self, username: str) -> Optional[UserStub]: ...

    def create_user(self, user: UserStub, password: str) -> str:
        """Persist ``user`` with ``password`` and return the new id."""
        ...


class TopicRepository(Protocol):
    def find_topic_by_name(self, name: str) -> Optional[TopicStub]:
        """Case-insensitive exact match on the topic name."""
        ...

    def create_topic(self, topic: TopicStub) -> str: ...


class ContentRepository(Protocol):
    def content_exists(self, kind: str, url: str) -> bool: ...

    def create_content(self, doc: Union[ArticleDoc, PageDoc]) -> str: ...


class MediaRepository(Protocol):
    def find_media_by_location(self, location: str) -> Optional[MediaDescriptor]: ...

    def find_media_by_source(self, source: str) -> Optional[MediaDescriptor]: ...

    def create_media(self, media: MediaDescriptor) -> str: ...

    def store_media_content(self, data: bytes, original_filename: str, content_type: Optional[str] = None) -> str:
        """Write ``data`` to media storage and return its ``/media/...`` path."""
        ...
