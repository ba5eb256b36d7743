import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import csv
import json

import pytest
import requests

from blogger_import.config import import_settings, load_config
from blogger_import.models import UserStub
from blogger_import.utils import errors
from blogger_import.utils.errors import MediaFetchError
from blogger_import.utils.http import fetch_media, with_retries
from blogger_import.utils.naming import UniqueNames
from blogger_import.utils.reports import generate_users_csv


def test_unique_names_counter_is_per_instance():
    first = UniqueNames(clock=lambda: 1.5)
    second = UniqueNames(clock=lambda: 1.5)
    assert first.next("Article") == "Article-0-1500"
    assert first.next("Page") == "Page-1-1500"
    assert second.next("Article") == "Article-0-1500"


def test_unique_names_default_tokens_differ():
    names = UniqueNames()
    assert names.token() != names.token()


def test_with_retries_retries_server_errors(fake_response):
    responses = [fake_response(status_code=503), fake_response(b"ok")]
    sleeps = []
    resp = with_retries(lambda: responses.pop(0), max_attempts=3, sleep_fn=sleeps.append)
    assert resp.body == b"ok"
    assert sleeps == [0.7]


def test_with_retries_does_not_retry_client_errors(fake_response):
    calls = []

    def fn():
        calls.append(1)
        return fake_response(status_code=404)

    with pytest.raises(requests.HTTPError):
        with_retries(fn, max_attempts=3, sleep_fn=lambda _: None)
    assert len(calls) == 1


def test_fetch_media_returns_bytes_and_type(fake_session, fake_response):
    response = fake_response(b"abc", headers={"Content-Type": "image/gif"})
    session = fake_session({"http://ex/a.gif": response})
    assert fetch_media("http://ex/a.gif", session=session, timeout=3, max_attempts=1) == (b"abc", "image/gif")
    assert response.closed


@pytest.mark.parametrize("url", [None, "", "ftp://ex/a.png", "file:///etc/passwd", "/relative.png"])
def test_fetch_media_rejects_other_schemes(url, fake_session):
    session = fake_session()
    with pytest.raises(MediaFetchError):
        fetch_media(url, session=session)
    assert session.calls == []


def test_fetch_media_wraps_network_errors(fake_session):
    with pytest.raises(MediaFetchError):
        fetch_media("http://ex/missing.png", session=fake_session(), max_attempts=1)


def test_generate_users_csv(tmp_path):
    out = tmp_path / "out" / "users.csv"
    users = [
        UserStub(username="alice", email="user_1@placeholder.com", generated_password="abcdefgh", id="1"),
        UserStub(username="bob", id="2"),
    ]

    path = generate_users_csv(users, out_path=str(out))

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [
        ["Username", "Email", "Password"],
        ["alice", "user_1@placeholder.com", "abcdefgh"],
        ["bob", "", ""],
    ]


def test_report_files_are_jsonl(report_dir):
    errors.report_error("MEDIA_FETCH", {"source": "http://ex/a.png"}, MediaFetchError("boom"))
    errors.report_ok("TOPIC_CREATED", {"name": "Travel"}, {"id": "t1"})

    error = json.loads((report_dir / "errors.jsonl").read_text().strip())
    assert error == {
        "code": "MEDIA_FETCH",
        "message": "Failed to create media object",
        "source": "http://ex/a.png",
        "error": "boom",
    }
    ok = json.loads((report_dir / "success.jsonl").read_text().strip())
    assert ok["id"] == "t1" and ok["name"] == "Travel"
    assert "Failed to create media object - http://ex/a.png" in (report_dir / "import.log").read_text()


def test_log_level_filters_console(report_dir, capsys):
    errors.log_message("hidden", level="DEBUG")
    errors.log_message("shown", level="WARNING")
    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "[WARNING] shown" in out
    assert "hidden" in (report_dir / "import.log").read_text()


def test_load_config_defaults_and_env(monkeypatch):
    monkeypatch.setenv("BLOGGER_IMPORT_DB", "/tmp/other.duckdb")
    monkeypatch.setenv("BLOGGER_IMPORT_DEFAULT_AUTHOR", "editor")
    config = load_config({"import": {"download_media": True}})

    assert config["store"]["database"] == "/tmp/other.duckdb"
    settings = import_settings(config)
    assert settings.download_media is True
    assert settings.create_new_users is False
    assert settings.default_author_id == "editor"
    assert settings.fetch_retries == 3


def test_load_config_reads_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"import": {"create_new_users": True}, "logging": {"level": "DEBUG"}}))
    config = load_config(config_file=str(path))
    assert config["import"]["create_new_users"] is True
    assert config["logging"]["level"] == "DEBUG"
    assert config["import"]["topic_concurrency"] == 4


class TrickleResponse:
    """Sends one byte per chunk, advancing a fake clock before each."""

    def __init__(self, now, delay, body=b"abcdefgh"):
        self.now = now
        self.delay = delay
        self.body = body
        self.sent = 0
        self.headers = {"Content-Type": "image/png"}
        self.closed = False

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size=1):
        for i in range(len(self.body)):
            self.now[0] += self.delay
            self.sent += 1
            yield self.body[i:i + 1]

    def close(self):
        self.closed = True


def test_fetch_media_deadline_covers_the_whole_body(fake_session):
    now = [0.0]
    response = TrickleResponse(now, delay=0.5)
    session = fake_session({"http://ex/slow.png": response})

    with pytest.raises(MediaFetchError):
        fetch_media("http://ex/slow.png", session=session, timeout=1.0, max_attempts=1, clock=lambda: now[0])

    assert response.sent < len(response.body)
    assert response.closed


def test_fetch_media_within_deadline_succeeds(fake_session):
    now = [0.0]
    session = fake_session({"http://ex/ok.png": TrickleResponse(now, delay=0.1)})
    data, _ = fetch_media("http://ex/ok.png", session=session, timeout=1.0, max_attempts=1, clock=lambda: now[0])
    assert data == b"abcdefgh"


def test_fetch_media_rejects_oversized_body(fake_session, fake_response):
    response = fake_response(b"x" * 10)
    session = fake_session({"http://ex/big.png": response})
    with pytest.raises(MediaFetchError):
        fetch_media("http://ex/big.png", session=session, max_attempts=1, max_bytes=4)
    assert response.closed
