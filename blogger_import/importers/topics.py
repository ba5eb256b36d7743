"""
Resolution of Blogger labels to topics in the content store.

Labels are collected from every entry, Blogger schema terms and the
"uncategorized" pseudo label are dropped, and the rest are deduplicated
case-insensitively (the first casing wins).  Each topic is looked up by name
and created when missing.  The lookups are independent, so they run as a
bounded concurrent fan-out.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

from blogger_import.models import Feed, TopicStub, is_schema_term
from blogger_import.store.protocols import TopicRepository
from blogger_import.utils.errors import PersistenceError, log_message, report_error, report_ok
from blogger_import.utils.sanitize import sanitize

UNCATEGORIZED = "uncategorized"


def topic_key(term: str) -> str:
    """Normalize a category term to the key used by the topic map."""
    return sanitize(term.strip()).lower()


def collect_topics(feed: Feed) -> Dict[str, TopicStub]:
    """Distinct topics named by ``feed``, keyed by lower-cased name."""
    topics: Dict[str, TopicStub] = {}
    for entry in feed.entries:
        for category in entry.categories:
            if is_schema_term(category.term):
                continue
            name = sanitize(category.term.strip())
            key = name.lower()
            if name and key != UNCATEGORIZED and key not in topics:
                topics[key] = TopicStub(name=name)
    return topics


def _resolve_one(repo: TopicRepository, topic: TopicStub) -> TopicStub:
    existing = repo.find_topic_by_name(topic.name)
    if existing is not None:
        log_message(f"Topic {topic.name} already exists. Skipping", level="DEBUG")
        report_ok("TOPIC_EXISTS", {"name": topic.name})
        return existing
    created = TopicStub(name=topic.name, id=repo.create_topic(topic))
    report_ok("TOPIC_CREATED", {"name": created.name}, {"id": created.id})
    return created


def resolve_topics(feed: Feed, repo: TopicRepository, *, concurrency: int = 4) -> Dict[str, TopicStub]:
    """
    Ensure every topic named in ``feed`` exists and return them keyed by
    lower-cased name.

    All lookups run to completion even when some of them fail; topics that
    were created stay persisted.

    :raises PersistenceError: after the fan-out if any topic failed.  The
        individual errors are available in ``failures``.
    """
    log_message("Parsing topics...", level="DEBUG")
    wanted = collect_topics(feed)
    if not wanted:
        return {}

    results: List[Tuple[str, Optional[TopicStub], Optional[PersistenceError]]] = []
    with ThreadPoolExecutor(max_workers=max(1, concurrency)) as pool:
        futures = {key: pool.submit(_resolve_one, repo, topic) for key, topic in wanted.items()}
        for key, future in futures.items():
            try:
                results.append((key, future.result(), None))
            except PersistenceError as e:
                report_error("TOPIC_PERSIST", {"name": wanted[key].name}, e)
                results.append((key, None, e))

    failures = [err for _, _, err in results if err is not None]
    if failures:
        raise PersistenceError(
            f"Failed to resolve {len(failures)} of {len(wanted)} topics: {failures[0]}",
            failures=failures,
        )
    return {key: topic for key, topic, _ in results}
