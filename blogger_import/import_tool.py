"""
High-level orchestration of the Blogger import.

This module defines a :class:`BloggerImportTool` class that ties together
the extractor, the import stages and the content store into a complete
pipeline: parse the export, resolve users, resolve topics, then import pages
and articles with their embedded media.  The result lists the users the run
resolved, including the one-time passwords of the users it created.

Configuration is supplied via a JSON file path or directly as a dictionary
(see :mod:`blogger_import.config`).  The ``import`` section holds the
``create_new_users`` and ``download_media`` switches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import requests

from blogger_import.config import ImportSettings, import_settings, load_config
from blogger_import.extractors.blogger_extractor import parse_feed
from blogger_import.importers.entries import EntryImporter, ImportReport
from blogger_import.importers.media import MediaExtractor
from blogger_import.importers.topics import resolve_topics
from blogger_import.importers.users import resolve_users
from blogger_import.models import UserStub
from blogger_import.store.duckdb_store import DuckDBStore
from blogger_import.utils.errors import (
    BloggerImportError,
    MalformedInputError,
    PersistenceError,
    configure_reports,
    log_message,
    report_error,
)
from blogger_import.utils.naming import UniqueNames


@dataclass
class ImportResult:
    users: List[UserStub] = field(default_factory=list)
    report: ImportReport = field(default_factory=ImportReport)
    errors: List[BloggerImportError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def created_users(self) -> List[UserStub]:
        return [u for u in self.users if u.generated_password]

    def raise_for_errors(self) -> None:
        """Raise the first recorded error, if any."""
        if self.errors:
            raise self.errors[0]


class BloggerImportTool:
    """
    Encapsulates all state and behavior required to import a Blogger export
    into the content store.  This class is responsible for reading
    configuration, opening the store and running the stages in order.
    Detailed success and failure information is recorded using the
    :mod:`blogger_import.utils.errors` module.

    :param config: Configuration dictionary; see :func:`load_config`.
    :param config_file: JSON file to read the configuration from.
    :param store: Store implementing the repository protocols.  When omitted
        a :class:`DuckDBStore` is opened from the ``store`` section.
    :param session: ``requests.Session`` used to download media.
    :param names: Source of unique values; a fresh one per tool by default.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        store: Optional[Any] = None,
        session: Optional[requests.Session] = None,
        names: Optional[UniqueNames] = None,
    ) -> None:
        self.config = load_config(config, config_file=config_file)
        configure_reports(self.config["logging"]["report_dir"], self.config["logging"]["level"])
        self.settings: ImportSettings = import_settings(self.config)
        self.store = store or DuckDBStore(
            self.config["store"]["database"], media_root=self.config["store"]["media_root"]
        )
        self.session = session
        self.names = names or UniqueNames()

    def log_message(self, message: str, level: str = "INFO") -> None:
        log_message(message, level)

    def run_import(self, xml_document: Union[str, bytes], default_author_id: Optional[str] = None) -> ImportResult:
        """
        Import ``xml_document`` into the store.

        :param xml_document: The Blogger export.
        :param default_author_id: Author for entries whose author was not
            resolved to a user.  Falls back to ``import.default_author_id``.
        :return: The resolved users, the entry report and any non-terminal
            errors.  Topic failures stop the run before entries are imported
            and are returned in ``errors`` together with the users created so
            far.
        :raises MalformedInputError: when the export cannot be parsed.
        :raises PersistenceError: when a user cannot be resolved or created.
        """
        default_author = default_author_id or self.settings.default_author_id or None
        self.log_message("Starting to parse...", level="DEBUG")
        try:
            feed = parse_feed(xml_document)
        except MalformedInputError as e:
            report_error("INVALID_XML", {}, e)
            raise
        self.log_message(f"Parsed {len(feed.entries)} entries.")

        users = resolve_users(feed, self.settings, self.store, self.names)
        result = ImportResult(users=list(users.values()))

        try:
            topics = resolve_topics(feed, self.store, concurrency=self.settings.topic_concurrency)
        except PersistenceError as e:
            self.log_message(f"Topic resolution failed, entries were not imported: {e}", level="ERROR")
            result.errors.append(e)
            return result

        media = MediaExtractor(self.store, self.settings, self.names, session=self.session)
        importer = EntryImporter(self.store, media, self.names)
        result.report = importer.import_entries(default_author, feed, users, topics)

        result.errors.extend(error for _, error in result.report.failures)
        self.log_message(
            f"Import finished: {len(result.report.pages_created)} pages and "
            f"{len(result.report.articles_created)} articles created, "
            f"{len(result.report.skipped)} skipped, {len(result.report.failures)} failed."
        )
        return result

    def run_import_file(self, xml_path: str, default_author_id: Optional[str] = None) -> ImportResult:
        with open(xml_path, mode="rb") as f:
            return self.run_import(f.read(), default_author_id)
