from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

# Category terms under this prefix are Blogger structural metadata, not labels.
BLOGGER_SCHEMA_PREFIX = "http://schemas.google.com/blogger"
KIND_PREFIX = "http://schemas.google.com/blogger/2008/kind#"
KIND_POST = KIND_PREFIX + "post"
KIND_PAGE = KIND_PREFIX + "page"


def is_schema_term(term: str) -> bool:
    return term.startswith(BLOGGER_SCHEMA_PREFIX)


class Link(BaseModel):
    model_config = ConfigDict(frozen=True)

    rel: Optional[str] = None
    href: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    term: str
    scheme: Optional[str] = None


class Entry(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    content: Optional[str] = None
    published: Optional[datetime] = None
    author: Optional[str] = None
    categories: Tuple[Category, ...] = ()
    links: Tuple[Link, ...] = ()

    @field_validator("published", mode="before")
    @classmethod
    def _lenient_datetime(cls, v):
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return v

    @property
    def kind(self) -> str:
        """``article``, ``page`` or ``other``, from the Blogger kind category."""
        for category in self.categories:
            if category.term == KIND_POST:
                return "article"
            if category.term == KIND_PAGE:
                return "page"
            if category.term.startswith(KIND_PREFIX):
                return "other"
        return "other"

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(c.term for c in self.categories if not is_schema_term(c.term))

    @property
    def alternate_url(self) -> Optional[str]:
        for link in self.links:
            if link.rel == "alternate" and link.href:
                return link.href
        return None


class Feed(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    entries: Tuple[Entry, ...] = ()
