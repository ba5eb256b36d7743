import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from blogger_import.extractors.blogger_extractor import parse_feed
from blogger_import.importers.topics import collect_topics, resolve_topics
from blogger_import.models import TopicStub
from blogger_import.utils.errors import PersistenceError


def test_schema_terms_are_never_topics(make_feed, make_entry):
    feed = parse_feed(make_feed(make_entry(labels=["http://schemas.google.com/blogger/2008/kind#post", "Travel"])))
    assert list(collect_topics(feed)) == ["travel"]


@pytest.mark.parametrize("label", ["Uncategorized", "uncategorized", "UNCATEGORIZED", "  Uncategorized "])
def test_uncategorized_is_excluded(make_feed, make_entry, label):
    feed = parse_feed(make_feed(make_entry(labels=[label])))
    assert collect_topics(feed) == {}


def test_case_insensitive_dedup_keeps_first_casing(make_feed, make_entry):
    feed = parse_feed(make_feed(
        make_entry(labels=["Travel", " food "]),
        make_entry(labels=["TRAVEL", "Food"]),
    ))
    topics = collect_topics(feed)
    assert list(topics) == ["travel", "food"]
    assert topics["travel"].name == "Travel"
    assert topics["food"].name == "food"


def test_labels_are_sanitized(make_feed, make_entry):
    feed = parse_feed(make_feed(make_entry(labels=["<b>News</b>", "Tips &amp; Tricks"])))
    assert [t.name for t in collect_topics(feed).values()] == ["News", "Tips & Tricks"]


def test_resolve_creates_missing_and_reuses_existing(make_feed, make_entry, store):
    existing_id = store.create_topic(TopicStub(name="travel"))
    feed = parse_feed(make_feed(make_entry(labels=["Travel", "Food", "Music"])))

    topics = resolve_topics(feed, store, concurrency=2)

    assert topics["travel"].id == existing_id
    assert topics["travel"].name == "travel"
    assert topics["food"].id and topics["music"].id
    assert store.count("topics") == 3


def test_resolve_twice_is_stable(make_feed, make_entry, store):
    feed = parse_feed(make_feed(make_entry(labels=["A", "B", "C", "D", "E"])))
    first = resolve_topics(feed, store, concurrency=4)
    second = resolve_topics(feed, store, concurrency=4)
    assert {k: t.id for k, t in first.items()} == {k: t.id for k, t in second.items()}
    assert store.count("topics") == 5


def test_failure_in_one_topic_keeps_the_others(make_feed, make_entry, flaky_store):
    flaky_store.fail_on["create_topic"] = {"Broken"}
    feed = parse_feed(make_feed(make_entry(labels=["Good", "Broken", "Fine"])))

    with pytest.raises(PersistenceError) as excinfo:
        resolve_topics(feed, flaky_store, concurrency=3)

    assert len(excinfo.value.failures) == 1
    assert flaky_store.find_topic_by_name("good") is not None
    assert flaky_store.find_topic_by_name("fine") is not None
    assert flaky_store.find_topic_by_name("broken") is None


def test_feed_without_labels(make_feed, make_entry, store):
    assert resolve_topics(parse_feed(make_feed(make_entry())), store) == {}
