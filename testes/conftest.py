import os
import sys
from xml.sax.saxutils import escape, quoteattr

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
import requests

from blogger_import.config import ImportSettings
from blogger_import.models import KIND_PAGE, KIND_POST
from blogger_import.store.duckdb_store import DuckDBStore
from blogger_import.utils import errors
from blogger_import.utils.errors import PersistenceError
from blogger_import.utils.naming import UniqueNames

ATOM = "http://www.w3.org/2005/Atom"
KINDS = {"post": KIND_POST, "page": KIND_PAGE, "settings": "http://schemas.google.com/blogger/2008/kind#settings"}


def entry_xml(kind="post", title="Untitled", content="<p>Body</p>", author="alice", labels=(), href=None,
              published="2015-03-01T10:00:00.000-08:00"):
    """Build one Blogger ``<entry>`` element as text."""
    parts = [
        "<entry>",
        f"<published>{published}</published>",
        f"<category scheme='http://schemas.google.com/g/2005#kind' term={quoteattr(KINDS[kind])}/>",
    ]
    for label in labels:
        parts.append(f"<category scheme='http://www.blogger.com/atom/ns#' term={quoteattr(label)}/>")
    parts.append(f"<title type='text'>{escape(title or '')}</title>")
    if content is not None:
        parts.append(f"<content type='html'>{escape(content, {chr(13): '&#13;'})}</content>")
    parts.append("<link rel='replies' type='application/atom+xml' href='http://blog.example.com/feeds/1/comments/default'/>")
    if href:
        parts.append(f"<link rel='alternate' type='text/html' href={quoteattr(href)}/>")
    if author is not None:
        parts.append(f"<author><name>{escape(author)}</name></author>")
    parts.append("</entry>")
    return "".join(parts)


def feed_xml(*entries):
    return (
        "<?xml version='1.0' encoding='UTF-8'?>"
        f"<feed xmlns='{ATOM}' xmlns:thr='http://purl.org/syndication/thread/1.0'>"
        "<title type='text'>Example Blog</title>"
        + "".join(entries)
        + "</feed>"
    )


@pytest.fixture
def make_entry():
    return entry_xml


@pytest.fixture
def make_feed():
    return feed_xml


@pytest.fixture(autouse=True)
def report_dir(tmp_path, monkeypatch):
    path = tmp_path / "reports"
    monkeypatch.setattr(errors, "_REPORT_DIR", str(path))
    monkeypatch.setattr(errors, "_LOG_LEVEL", "INFO")
    return path


@pytest.fixture
def store(tmp_path):
    s = DuckDBStore(":memory:", media_root=tmp_path / "media")
    yield s
    s.close()


@pytest.fixture
def names():
    counter = iter(range(1, 10_000))
    return UniqueNames(clock=lambda: 1700000000.0, token_factory=lambda: f"tok{next(counter)}")


@pytest.fixture
def settings():
    return ImportSettings(create_new_users=True, download_media=False, fetch_retries=1, media_timeout=1.0)


class FakeResponse:
    def __init__(self, body=b"", status_code=200, headers=None):
        self.body = body
        self.status_code = status_code
        self.headers = headers or {"Content-Type": "image/png"}
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Serves canned responses by URL; unknown URLs raise ConnectionError."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def get(self, url, timeout=None, stream=False):
        self.calls.append((url, timeout))
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"Simulated network error for {url}")
        return response


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


class FlakyStore(DuckDBStore):
    """DuckDB store whose operations can be made to fail by name and argument."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_on = {}

    def _maybe_fail(self, operation, value):
        if value in self.fail_on.get(operation, ()):
            raise PersistenceError(f"Simulated {operation} failure for {value}")

    def find_user_by_username(self, username):
        self._maybe_fail("find_user", username)
        return super().find_user_by_username(username)

    def create_user(self, user, password):
        self._maybe_fail("create_user", user.username)
        return super().create_user(user, password)

    def create_topic(self, topic):
        self._maybe_fail("create_topic", topic.name)
        return super().create_topic(topic)

    def create_content(self, doc):
        self._maybe_fail("create_content", doc.url)
        return super().create_content(doc)

    def create_media(self, media):
        self._maybe_fail("create_media", media.location)
        return super().create_media(media)


@pytest.fixture
def flaky_store(tmp_path):
    s = FlakyStore(":memory:", media_root=tmp_path / "media")
    yield s
    s.close()
