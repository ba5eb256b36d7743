"""
Extractors for Blogger export data.

This subpackage provides functions to parse the Atom XML export produced by
Blogger into the :class:`~blogger_import.models.Feed` model.
"""

from .blogger_extractor import parse_feed, parse_feed_file

__all__ = ["parse_feed", "parse_feed_file"]
