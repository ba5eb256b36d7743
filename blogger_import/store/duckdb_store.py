"""
DuckDB-backed content store.

:class:`DuckDBStore` implements the user, topic, content and media
repositories on top of a single DuckDB database file (or ``:memory:``).
Uploaded media bytes are written below ``media_root`` and addressed with
``/media/<yyyy>/<mm>/<file>`` paths.

A DuckDB connection is not safe to share between threads, so every
operation holds the store lock.  This matters for topic creation, which runs
as a concurrent fan-out.
"""

from __future__ import annotations

import hashlib
import json
import mimetypes
import os
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

import duckdb

from blogger_import.models import ArticleDoc, MediaDescriptor, PageDoc, TopicStub, UserStub
from blogger_import.utils.errors import PersistenceError

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id VARCHAR PRIMARY KEY,
        username VARCHAR NOT NULL,
        email VARCHAR,
        admin VARCHAR,
        password_hash VARCHAR,
        created VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS topics (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        created VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS media (
        id VARCHAR PRIMARY KEY,
        name VARCHAR,
        media_type VARCHAR,
        location VARCHAR NOT NULL,
        thumb VARCHAR,
        caption VARCHAR,
        is_file BOOLEAN,
        media_topics VARCHAR,
        source VARCHAR,
        created VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS content (
        id VARCHAR PRIMARY KEY,
        kind VARCHAR NOT NULL,
        url VARCHAR NOT NULL,
        headline VARCHAR,
        author VARCHAR,
        publish_date VARCHAR,
        payload VARCHAR,
        created VARCHAR
    )
    """,
    # Stores created before media sources were recorded.
    "ALTER TABLE media ADD COLUMN IF NOT EXISTS source VARCHAR",
]


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 100_000)
    return f"pbkdf2_sha256${salt.hex()}${digest.hex()}"


def _now() -> str:
    return datetime.now().isoformat()


class DuckDBStore:
    def __init__(self, database: str = ":memory:", *, media_root: Union[str, Path] = "data/media") -> None:
        if database != ":memory:":
            os.makedirs(os.path.dirname(database) or ".", exist_ok=True)
        self.media_root = Path(media_root)
        self._lock = threading.RLock()
        try:
            self._con = duckdb.connect(database=database, read_only=False)
            for statement in _SCHEMA:
                self._con.execute(statement)
        except duckdb.Error as e:
            raise PersistenceError(f"Unable to open store {database}: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._con.close()

    def _fetchone(self, query: str, params: List[Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            try:
                cursor = self._con.execute(query, params)
                row = cursor.fetchone()
                if row is None:
                    return None
                columns = [d[0] for d in cursor.description]
            except duckdb.Error as e:
                raise PersistenceError(f"Query failed: {e}") from e
        return dict(zip(columns, row))

    def _insert(self, table: str, values: Dict[str, Any]) -> str:
        values = {"id": uuid.uuid4().hex, **values, "created": _now()}
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._lock:
            try:
                self._con.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(values.values()))
            except duckdb.Error as e:
                raise PersistenceError(f"Insert into {table} failed: {e}") from e
        return values["id"]

    # ---- users ----

    def find_user_by_username(self, username: str) -> Optional[UserStub]:
        row = self._fetchone("SELECT id, username, email, admin FROM users WHERE username = ? LIMIT 1", [username])
        return UserStub(**row) if row else None

    def create_user(self, user: UserStub, password: str) -> str:
        return self._insert("users", {
            "username": user.username,
            "email": user.email,
            "admin": user.admin,
            "password_hash": hash_password(password),
        })

    # ---- topics ----

    def find_topic_by_name(self, name: str) -> Optional[TopicStub]:
        row = self._fetchone("SELECT id, name FROM topics WHERE lower(name) = lower(?) LIMIT 1", [name])
        return TopicStub(**row) if row else None

    def create_topic(self, topic: TopicStub) -> str:
        return self._insert("topics", {"name": topic.name})

    # ---- content ----

    def content_exists(self, kind: str, url: str) -> bool:
        return self._fetchone("SELECT id FROM content WHERE kind = ? AND url = ? LIMIT 1", [kind, url]) is not None

    def create_content(self, doc: Union[ArticleDoc, PageDoc]) -> str:
        record = doc.to_record()
        return self._insert("content", {
            "kind": doc.kind,
            "url": doc.url,
            "headline": doc.headline,
            "author": doc.author,
            "publish_date": record["publish_date"],
            "payload": json.dumps(record, ensure_ascii=False),
        })

    def get_content(self, kind: str, url: str) -> Optional[Dict[str, Any]]:
        row = self._fetchone("SELECT id, payload FROM content WHERE kind = ? AND url = ? LIMIT 1", [kind, url])
        if not row:
            return None
        return {"id": row["id"], **json.loads(row["payload"])}

    def count(self, table: str) -> int:
        if table not in ("users", "topics", "media", "content"):
            raise ValueError(f"Unknown table {table}")
        return self._fetchone(f"SELECT count(*) AS n FROM {table}", [])["n"]

    # ---- media ----

    def _find_media(self, column: str, value: str) -> Optional[MediaDescriptor]:
        row = self._fetchone(
            "SELECT id, name, media_type, location, thumb, caption, is_file, media_topics, source "
            f"FROM media WHERE {column} = ? LIMIT 1",
            [value],
        )
        if not row:
            return None
        row["media_topics"] = json.loads(row["media_topics"] or "[]")
        row["caption"] = row["caption"] or ""
        return MediaDescriptor(**row)

    def find_media_by_location(self, location: str) -> Optional[MediaDescriptor]:
        return self._find_media("location", location)

    def find_media_by_source(self, source: str) -> Optional[MediaDescriptor]:
        return self._find_media("source", source)

    def create_media(self, media: MediaDescriptor) -> str:
        return self._insert("media", {
            "name": media.name,
            "media_type": media.media_type,
            "location": media.location,
            "thumb": media.thumb,
            "caption": media.caption,
            "is_file": media.is_file,
            "media_topics": json.dumps(media.media_topics),
            "source": media.source,
        })

    def store_media_content(self, data: bytes, original_filename: str, content_type: Optional[str] = None) -> str:
        ext = os.path.splitext(urlparse(original_filename).path)[1].lower()
        if not ext and content_type:
            ext = mimetypes.guess_extension(content_type.split(";")[0].strip()) or ""
        now = datetime.now()
        relative = Path(f"{now:%Y}") / f"{now:%m}" / f"{uuid.uuid4().hex}{ext}"
        target = self.media_root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise PersistenceError(f"Unable to write media file {target}: {e}") from e
        return "/media/" + relative.as_posix()
