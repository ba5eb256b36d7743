"""
Utility helpers used by the import tool.

This subpackage exposes the error taxonomy, structured logging, HTML
sanitization and unique name generation.  The users CSV report lives in
:mod:`blogger_import.utils.reports`.
"""

from .errors import (
    EVENTS,
    BloggerImportError,
    MalformedInputError,
    MediaFetchError,
    PersistenceError,
    UnresolvedReferenceError,
    log_message,
    report_error,
    report_ok,
)
from .naming import UniqueNames
from .sanitize import CONTENT_RULES, sanitize

__all__ = [
    "EVENTS",
    "BloggerImportError",
    "MalformedInputError",
    "MediaFetchError",
    "PersistenceError",
    "UnresolvedReferenceError",
    "log_message",
    "report_error",
    "report_ok",
    "UniqueNames",
    "CONTENT_RULES",
    "sanitize",
]
