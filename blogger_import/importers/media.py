"""
Extraction of embedded media from entry content.

The extractor repeatedly asks an ordered list of handlers for the next media
marker in the content.  For each marker the handler extracts the source and
caption, a media record is found or created (optionally after downloading
the remote file) and the marker is replaced with a display placeholder::

    ^media_display_<id>/position:center^

When a single item fails (bad URL, network error, storage error) its marker
is replaced with ``[Content: <source> Goes Here]`` so the problem can be
fixed by hand, and extraction moves on to the next marker.

New media kinds are added by writing another :class:`MediaHandler` and
passing it in ``handlers``.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import requests

from blogger_import.models import MediaDescriptor
from blogger_import.store.protocols import MediaRepository
from blogger_import.utils.errors import MediaFetchError, PersistenceError, log_message, report_error, report_ok
from blogger_import.utils.http import fetch_media
from blogger_import.utils.naming import UniqueNames

if TYPE_CHECKING:
    from blogger_import.config import ImportSettings

MEDIA_PLACEHOLDER = "^media_display_{id}/position:center^"
FAILED_PLACEHOLDER = "[Content: {source} Goes Here]"

_ATTRIBUTE = re.compile(
    r"""([^\s"'<>/=]+)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
)


def parse_attributes(tag: str) -> Dict[str, str]:
    """Attribute values of a single HTML start tag, names lower-cased."""
    attrs: Dict[str, str] = {}
    for match in _ATTRIBUTE.finditer(tag):
        name = match.group(1).lower()
        value = next(g for g in match.groups()[1:] if g is not None)
        attrs.setdefault(name, html.unescape(value))
    return attrs


def find_tag_end(content: str, start: int) -> int:
    """Index just past the ``>`` closing the tag opened at ``start``.

    A ``>`` inside a quoted attribute value does not close the tag.  When the
    tag is never closed the rest of the content is taken.
    """
    quote = None
    for i in range(start + 1, len(content)):
        ch = content[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == ">":
            return i + 1
    return len(content)


@dataclass
class MediaDetails:
    source: str
    caption: str
    replacement: str


class MediaHandler:
    """A media kind the extractor knows how to find and materialize."""

    name = ""
    media_type = ""

    def detect(self, content: str, pos: int = 0) -> Optional[Tuple[int, int]]:
        """Return ``(start, end)`` of the next marker at or after ``pos``."""
        raise NotImplementedError

    def extract(self, marker: str) -> MediaDetails:
        raise NotImplementedError

    def materialize(self, details: MediaDetails, extractor: "MediaExtractor") -> MediaDescriptor:
        existing = extractor.find_by_source(details.source)
        if existing is not None:
            return existing
        location = extractor.resolve_location(details.source)
        return extractor.create_media_object(self.media_type, location, details.caption, source=details.source)


class ImageHandler(MediaHandler):
    name = "image"
    media_type = "image"

    _OPEN = re.compile(r"<img(?=[\s/>]|$)", re.IGNORECASE)
    _CLOSE = re.compile(r"\s*</img\s*>", re.IGNORECASE)

    def detect(self, content: str, pos: int = 0) -> Optional[Tuple[int, int]]:
        match = self._OPEN.search(content, pos)
        if not match:
            return None
        start = match.start()
        end = find_tag_end(content, start)
        if not content[:end].endswith("/>"):
            closing = self._CLOSE.match(content, end)
            if closing:
                end = closing.end()
        return start, end

    def extract(self, marker: str) -> MediaDetails:
        attrs = parse_attributes(marker[len("<img"):])
        source = attrs.get("src", "").strip()
        if "?" in source:
            source = source[: source.index("?")]
        return MediaDetails(source=source, caption=attrs.get("alt", ""), replacement=marker)


DEFAULT_HANDLERS: Tuple[MediaHandler, ...] = (ImageHandler(),)


class MediaExtractor:
    """
    Rewrites entry content so that embedded media point at media records.

    :param repo: Media repository used for lookups, creation and file storage.
    :param settings: ``download_media``, ``media_timeout``, ``fetch_retries``
        and ``max_media_bytes`` are read from it.
    :param names: Source of unique media names.
    :param session: Optional ``requests.Session`` used for downloads.
    :param handlers: Media handlers in priority order.
    """

    def __init__(
        self,
        repo: MediaRepository,
        settings: "ImportSettings",
        names: UniqueNames,
        *,
        session: Optional[requests.Session] = None,
        handlers: Sequence[MediaHandler] = DEFAULT_HANDLERS,
    ) -> None:
        self.repo = repo
        self.settings = settings
        self.names = names
        self.session = session
        self.handlers = list(handlers)

    def _next_marker(self, content: str, pos: int) -> Optional[Tuple[MediaHandler, Tuple[int, int]]]:
        for handler in self.handlers:
            span = handler.detect(content, pos)
            if span is not None:
                return handler, span
        return None

    def extract(self, content: Optional[str]) -> Tuple[str, List[MediaDescriptor]]:
        """
        Replace every media marker in ``content``.

        :return: The rewritten content and the media records it now
            references, in marker order.
        """
        content = content or ""
        media: List[MediaDescriptor] = []
        pos = 0
        while True:
            found = self._next_marker(content, pos)
            if found is None:
                break
            handler, (start, end) = found
            details = handler.extract(content[start:end])
            log_message(
                f"Discovered media type [{handler.name}] with source [{details.source}] "
                f"and replacement [{details.replacement}]",
                level="DEBUG",
            )

            try:
                descriptor = handler.materialize(details, self)
                if descriptor.id is None:
                    descriptor.id = self.repo.create_media(descriptor)
                    report_ok("MEDIA_CREATED", {"source": details.source}, {"id": descriptor.id})
                placeholder = MEDIA_PLACEHOLDER.format(id=descriptor.id)
                media.append(descriptor)
            except (MediaFetchError, PersistenceError) as e:
                report_error("MEDIA_FETCH", {"source": details.source, "replacement": details.replacement}, e)
                placeholder = FAILED_PLACEHOLDER.format(source=details.source)

            content = content[:start] + placeholder + content[end:]
            pos = start + len(placeholder)
        return content, media

    def resolve_location(self, source: str) -> str:
        """The location to record for ``source``: the source itself, or the
        local path of the downloaded copy when downloads are enabled."""
        if not source:
            raise MediaFetchError("Media element has no source")
        if not self.settings.download_media:
            return source
        data, content_type = fetch_media(
            source,
            session=self.session,
            timeout=self.settings.media_timeout,
            max_attempts=self.settings.fetch_retries,
            max_bytes=self.settings.max_media_bytes,
        )
        return self.repo.store_media_content(data, source, content_type)

    def find_by_source(self, source: str) -> Optional[MediaDescriptor]:
        """The media record already imported from ``source``, so the same
        remote file is fetched and stored at most once."""
        if not source:
            return None
        return self.repo.find_media_by_source(source)

    def create_media_object(
        self, media_type: str, location: str, caption: str, source: Optional[str] = None
    ) -> MediaDescriptor:
        """Reuse the media record already stored at ``location`` or build a new,
        unsaved one."""
        existing = self.repo.find_media_by_location(location)
        if existing is not None:
            return existing
        return MediaDescriptor(
            media_type=media_type,
            location=location,
            thumb=location,
            name=f"Media_{self.names.token()}",
            caption=caption,
            is_file=location.startswith("/media"),
            source=source or location,
        )
