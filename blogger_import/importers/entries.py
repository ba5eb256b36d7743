"""
Classification and import of feed entries as pages and articles.

Entries whose Blogger kind is ``page`` or ``post`` and that have content are
imported; everything else (settings, templates, comments, empty drafts) is
ignored.  Pages are processed before articles, one entry at a time, in feed
order.  An entry whose URL already exists for its kind is skipped, which
makes repeated imports of the same export create nothing new.

A failure to save one entry does not stop the batch.  Failures are collected
in the returned :class:`ImportReport`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, NavigableString
from bs4.element import PreformattedString

from blogger_import.models import ArticleDoc, Entry, Feed, PageDoc, TopicStub, UserStub
from blogger_import.store.protocols import ContentRepository
from blogger_import.utils.errors import (
    PersistenceError,
    UnresolvedReferenceError,
    log_message,
    report_error,
    report_ok,
)
from blogger_import.utils.naming import UniqueNames
from blogger_import.utils.sanitize import CONTENT_RULES, sanitize

from .media import MediaExtractor
from .topics import UNCATEGORIZED, topic_key

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
# Line breaks below these tags are kept verbatim.
_PRESERVE_TAGS = {"pre", "textarea", "script", "style"}
# Whitespace directly inside these is layout between rows and items.
_STRUCTURE_TAGS = {"table", "thead", "tbody", "tfoot", "tr", "colgroup", "ul", "ol", "dl", "select"}


@dataclass
class ImportReport:
    pages_created: List[str] = field(default_factory=list)
    articles_created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[Tuple[str, PersistenceError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def classify_entries(feed: Feed) -> Tuple[List[Entry], List[Entry]]:
    """Split ``feed`` into ``(pages, articles)``; other entries are dropped."""
    pages: List[Entry] = []
    articles: List[Entry] = []
    for entry in feed.entries:
        if not entry.has_content:
            continue
        if entry.kind == "page":
            pages.append(entry)
        elif entry.kind == "article":
            articles.append(entry)
    return pages, articles


def derive_url(entry: Entry, names: UniqueNames, kind: str) -> str:
    """
    The last path segment of the entry's ``alternate`` link, falling back to
    the raw title and then to a generated unique value.
    """
    href = entry.alternate_url
    if href:
        suffix = href.rsplit("/", 1)[-1]
        if suffix:
            return suffix
    if entry.title and entry.title.strip():
        return entry.title
    return names.next(kind)


def normalize_line_breaks(content: str) -> str:
    """
    Turn line breaks in text into ``<br/>`` elements.

    Breaks inside tags, in preformatted blocks and between the rows or items
    of tables and lists are left alone.
    """
    if not content or not _LINE_BREAK.search(content):
        return content
    soup = BeautifulSoup(content, "html.parser")
    for node in list(soup.find_all(string=_LINE_BREAK)):
        if isinstance(node, PreformattedString):
            continue
        if node.parent is not None and node.parent.name in _STRUCTURE_TAGS:
            continue
        if any(parent.name in _PRESERVE_TAGS for parent in node.parents):
            continue
        parts = _LINE_BREAK.split(str(node))
        replacement = [NavigableString(parts[0])] if parts[0] else []
        for part in parts[1:]:
            replacement.append(soup.new_tag("br"))
            if part:
                replacement.append(NavigableString(part))
        node.replace_with(*replacement)
    return str(soup)


class EntryImporter:
    """
    Imports classified entries into the content store.

    :param content_repo: Content repository for existence checks and saves.
    :param media: Extractor used to rewrite embedded media.
    :param names: Source of fallback URLs and titles.
    """

    def __init__(self, content_repo: ContentRepository, media: MediaExtractor, names: UniqueNames) -> None:
        self.content_repo = content_repo
        self.media = media
        self.names = names

    def import_entries(
        self,
        default_author: Optional[str],
        feed: Feed,
        users: Dict[str, UserStub],
        topics: Dict[str, TopicStub],
    ) -> ImportReport:
        pages, articles = classify_entries(feed)
        log_message(f"Found [{len(pages)}] pages and [{len(articles)}] articles.")

        report = ImportReport()
        tasks = [("page", e) for e in pages] + [("article", e) for e in articles]
        for kind, entry in tasks:
            try:
                url = self.import_entry(kind, entry, default_author, users, topics)
            except PersistenceError as e:
                report_error(f"{kind.upper()}_PERSIST", {"title": entry.title}, e)
                report.failures.append((entry.title or "", e))
                continue
            if url is None:
                report.skipped.append(entry.title or "")
            elif kind == "page":
                report.pages_created.append(url)
            else:
                report.articles_created.append(url)
        return report

    def import_entry(
        self,
        kind: str,
        entry: Entry,
        default_author: Optional[str],
        users: Dict[str, UserStub],
        topics: Dict[str, TopicStub],
    ) -> Optional[str]:
        """
        Import one entry as ``kind`` (``"page"`` or ``"article"``).

        :return: The URL of the created document, or ``None`` when a document
            of this kind already exists at that URL.
        :raises PersistenceError: when the existence check or save fails.
        """
        name = entry.title or ""
        url = derive_url(entry, self.names, kind)
        log_message(f"Processing {kind} \"{name or url}\"")

        if self.content_repo.content_exists(kind, url):
            log_message(f"A {kind} with this URL [{url}] already exists.  Skipping", level="DEBUG")
            report_ok(f"{kind.upper()}_SKIPPED", {"url": url, "title": name})
            return None

        topic_ids = self.resolve_topic_ids(entry, topics, name or url)
        author = self.resolve_author(entry, users, default_author)

        log_message(f"Inspecting {kind} \"{name or url}\" for media content", level="DEBUG")
        content, media = self.media.extract(entry.content)
        content = normalize_line_breaks(content)
        media_ids = _unique([m.id for m in media if m.id])

        title = sanitize(entry.title) or self.names.next(kind.capitalize())
        common = {
            "url": url,
            "headline": title,
            "seo_title": title,
            "publish_date": entry.published or datetime.now(timezone.utc),
            "author": author,
        }
        layout = sanitize(content, CONTENT_RULES)
        doc: Union[ArticleDoc, PageDoc]
        if kind == "page":
            doc = PageDoc(page_layout=layout, page_topics=topic_ids, page_media=media_ids, **common)
        else:
            doc = ArticleDoc(
                article_layout=layout,
                article_topics=topic_ids,
                article_sections=[],
                article_media=media_ids,
                **common,
            )

        log_message(f"Saving {kind} {url}", level="DEBUG")
        doc.id = self.content_repo.create_content(doc)
        report_ok(f"{kind.upper()}_CREATED", {"url": url, "title": title}, {"id": doc.id})
        return url

    def resolve_topic_ids(self, entry: Entry, topics: Dict[str, TopicStub], entry_name: str) -> List[str]:
        ids: List[str] = []
        for term in entry.labels:
            key = topic_key(term)
            if not key or key == UNCATEGORIZED:
                continue
            topic = topics.get(key)
            if topic is None or topic.id is None:
                err = UnresolvedReferenceError(f"Unable to associate topic [{term}] with [{entry_name}]")
                report_error("TOPIC_UNRESOLVED", {"name": term, "title": entry_name}, err, level="WARNING")
                continue
            ids.append(topic.id)
        return _unique(ids)

    @staticmethod
    def resolve_author(entry: Entry, users: Dict[str, UserStub], default_author: Optional[str]) -> Optional[str]:
        user = users.get(entry.author or "")
        if user is not None and user.id:
            return user.id
        return default_author


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
