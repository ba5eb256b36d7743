"""
Top-level package for the Blogger import utility.

This package bundles all components required to import a Blogger XML export
into a content store: parsing the Atom feed, resolving authors and labels to
users and topics, rewriting embedded images as media records and saving
pages and articles without creating duplicates on repeated runs.  Modules are
split into subpackages:

* :mod:`blogger_import.extractors` – parse the Blogger export
* :mod:`blogger_import.importers` – user, topic, media and entry stages
* :mod:`blogger_import.store` – repository protocols and the DuckDB store
* :mod:`blogger_import.utils` – errors, logging, sanitization and reports

Each stage has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`blogger_import.import_tool`.
"""
