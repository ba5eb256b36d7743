from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ACCESS_WRITER = "writer"


class UserStub(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    username: str
    email: Optional[str] = None
    admin: str = ACCESS_WRITER
    # Plaintext password for users created in this run; shown to the caller once.
    generated_password: Optional[str] = None
    id: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TopicStub(BaseModel):
    name: str = Field(..., min_length=1)
    id: Optional[str] = None

    @property
    def key(self) -> str:
        return self.name.lower()


class MediaDescriptor(BaseModel):
    media_type: str = "image"
    location: str
    thumb: Optional[str] = Field(None, validate_default=True)
    name: str
    caption: str = ""
    is_file: bool = False
    media_topics: List[str] = Field(default_factory=list)
    # URL the media was found at in the export; differs from location once downloaded.
    source: Optional[str] = None
    id: Optional[str] = None

    @field_validator("thumb", mode="before")
    @classmethod
    def _default_thumb(cls, v, info):
        return v or info.data.get("location")


class ContentDoc(BaseModel):
    """Fields shared by articles and pages."""

    model_config = ConfigDict(populate_by_name=True)

    kind: ClassVar[str] = ""

    url: str = Field(..., min_length=1)
    headline: str
    seo_title: Optional[str] = Field(None, validate_default=True)
    publish_date: datetime
    author: Optional[str] = None
    id: Optional[str] = None

    @field_validator("seo_title", mode="before")
    @classmethod
    def _default_seo_title(cls, v, info):
        return v or info.data.get("headline")

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"id"})


class ArticleDoc(ContentDoc):
    kind: ClassVar[str] = "article"

    article_layout: str = ""
    article_topics: List[str] = Field(default_factory=list)
    article_sections: List[str] = Field(default_factory=list)
    article_media: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = Field(None, validate_default=True)

    @field_validator("thumbnail", mode="before")
    @classmethod
    def _first_media_as_thumbnail(cls, v, info):
        if v:
            return v
        media = info.data.get("article_media") or []
        return media[0] if media else None


class PageDoc(ContentDoc):
    kind: ClassVar[str] = "page"

    page_layout: str = ""
    page_topics: List[str] = Field(default_factory=list)
    page_media: List[str] = Field(default_factory=list)
