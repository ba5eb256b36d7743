"""
Error taxonomy and structured logging helpers for the Blogger import.

The :mod:`blogger_import.utils.errors` module centralizes both the exceptions
raised by the pipeline and the writing of log entries for failed and
successful operations.  Each report entry is appended to a JSON Lines file
under the report directory (``reports/import`` by default) so that the
information can be reviewed or parsed after a run.

Three public logging functions are provided:

``log_message``
    Print a human readable line and append it to ``import.log``.

``report_error``
    Record an error that occurred for an entry, user, topic or media item.
    An optional exception can be supplied and will be serialized to the log.

``report_ok``
    Record a successful step.  Additional key/value information can be
    attached to the entry via the ``extra`` parameter.

The ``EVENTS`` dictionary maps event codes to human readable messages.  Codes
not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence


class BloggerImportError(Exception):
    """Base class for every error raised by the import pipeline."""


class MalformedInputError(BloggerImportError):
    """The export document is not well-formed XML or is not an Atom feed."""


class PersistenceError(BloggerImportError):
    """A repository operation failed.

    When several independent operations fail (for example topic creation
    running as a fan-out) the individual exceptions are kept in ``failures``.
    """

    def __init__(self, message: str, failures: Optional[Sequence[BaseException]] = None) -> None:
        super().__init__(message)
        self.failures: List[BaseException] = list(failures or [])


class MediaFetchError(BloggerImportError):
    """A single media item could not be fetched or stored."""


class UnresolvedReferenceError(BloggerImportError):
    """A category term on an entry has no matching topic."""


# Mapping of event codes used throughout the import to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
EVENTS: Dict[str, str] = {
    "INVALID_XML": "Export document is not a valid Blogger feed",
    "USER_CREATED": "User created",
    "USER_EXISTS": "User already exists",
    "USER_PERSIST": "Failed to resolve or create user",
    "TOPIC_CREATED": "Topic created",
    "TOPIC_EXISTS": "Topic already exists",
    "TOPIC_PERSIST": "Failed to resolve or create topic",
    "TOPIC_UNRESOLVED": "Unable to associate topic with entry",
    "MEDIA_FETCH": "Failed to create media object",
    "MEDIA_CREATED": "Media object created",
    "ARTICLE_CREATED": "Article created",
    "ARTICLE_SKIPPED": "An article with this URL already exists",
    "ARTICLE_PERSIST": "Failed to save article",
    "PAGE_CREATED": "Page created",
    "PAGE_SKIPPED": "A page with this URL already exists",
    "PAGE_PERSIST": "Failed to save page",
}

_LEVELS: Dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}

_REPORT_DIR = os.path.join("reports", "import")
_LOG_LEVEL = "INFO"


def configure_reports(report_dir: Optional[str] = None, level: Optional[str] = None) -> None:
    """Change where report files are written and the console log threshold."""
    global _REPORT_DIR, _LOG_LEVEL
    if report_dir:
        _REPORT_DIR = report_dir
    if level:
        _LOG_LEVEL = level.upper()


def _write_jsonl(filename: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``filename``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, filename), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def log_message(message: str, level: str = "INFO") -> None:
    level = level.upper()
    if _LEVELS.get(level, 20) >= _LEVELS.get(_LOG_LEVEL, 20):
        print(f"[{level}] {message}")
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, "import.log"), "a", encoding="utf-8") as f:
        f.write(f"[{timestamp}] {level}: {message}\n")


def report_error(
    code: str, subject: Dict[str, Any], exc: Optional[BaseException] = None, *, level: str = "ERROR"
) -> None:
    """Log an error event for ``subject``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`EVENTS` its value will be used as the message.
    subject:
        A small dictionary describing what failed (``url``, ``title``,
        ``username``, ``source``...).  It is merged into the log entry.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the log entry.
    level:
        Console level of the message; non-fatal problems use ``WARNING``.
    """
    message = EVENTS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message}
    entry.update(subject)
    if exc is not None:
        entry["error"] = str(exc)
    log_message(f"{message} - {_describe(subject)}", level=level)
    _write_jsonl("errors.jsonl", entry)


def report_ok(code: str, subject: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful event for ``subject``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    subject:
        The dictionary describing the item the event is about.
    extra:
        Optional dictionary of additional fields to merge into the log entry.
    """
    message = EVENTS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message}
    entry.update(subject)
    if extra:
        entry.update(extra)
    log_message(f"{message} - {_describe(subject)}", level="DEBUG")
    _write_jsonl("success.jsonl", entry)


def _describe(subject: Dict[str, Any]) -> str:
    for key in ("url", "username", "name", "source", "title"):
        if subject.get(key):
            return str(subject[key])
    return ""
