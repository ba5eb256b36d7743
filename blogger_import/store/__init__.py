"""
Content store used by the import.

The pipeline only depends on the repository protocols in
:mod:`blogger_import.store.protocols`; :class:`DuckDBStore` is the bundled
implementation of all four.
"""

from .duckdb_store import DuckDBStore
from .protocols import ContentRepository, MediaRepository, TopicRepository, UserRepository

__all__ = ["DuckDBStore", "ContentRepository", "MediaRepository", "TopicRepository", "UserRepository"]
