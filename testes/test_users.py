import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from blogger_import.config import ImportSettings
from blogger_import.extractors.blogger_extractor import parse_feed
from blogger_import.importers.users import distinct_authors, generate_password, resolve_users
from blogger_import.models import UserStub
from blogger_import.utils.errors import PersistenceError


@pytest.fixture
def feed(make_feed, make_entry):
    return parse_feed(make_feed(
        make_entry(author="alice"),
        make_entry(author="bob"),
        make_entry(author="alice"),
        make_entry(author="carol"),
    ))


def test_distinct_authors_first_seen_order(feed):
    assert distinct_authors(feed) == ["alice", "bob", "carol"]


def test_disabled_creation_returns_empty_mapping(feed, store, names):
    users = resolve_users(feed, ImportSettings(create_new_users=False), store, names)
    assert users == {}
    assert store.count("users") == 0


def test_new_users_are_created_with_passwords(feed, store, names, settings):
    users = resolve_users(feed, settings, store, names)

    assert list(users) == ["alice", "bob", "carol"]
    for username, user in users.items():
        assert user.id
        assert user.admin == "writer"
        assert len(user.generated_password) == 8
        assert user.email.startswith("user_") and user.email.endswith("@placeholder.com")
        assert store.find_user_by_username(username).id == user.id
    assert len({u.email for u in users.values()}) == 3


def test_existing_users_are_reused_without_password(feed, store, names, settings):
    existing_id = store.create_user(UserStub(username="bob", email="bob@example.com"), "secret")

    users = resolve_users(feed, settings, store, names)

    assert users["bob"].id == existing_id
    assert users["bob"].generated_password is None
    assert users["alice"].generated_password
    assert store.count("users") == 3


def test_second_run_creates_nothing(feed, store, names, settings):
    first = resolve_users(feed, settings, store, names)
    second = resolve_users(feed, settings, store, names)

    assert {u: s.id for u, s in first.items()} == {u: s.id for u, s in second.items()}
    assert all(s.generated_password is None for s in second.values())
    assert store.count("users") == 3


def test_failure_aborts_remaining_users(feed, flaky_store, names, settings):
    flaky_store.fail_on["create_user"] = {"bob"}

    with pytest.raises(PersistenceError):
        resolve_users(feed, settings, flaky_store, names)

    assert flaky_store.find_user_by_username("alice") is not None
    assert flaky_store.find_user_by_username("carol") is None


def test_generated_password_length_and_randomness():
    passwords = {generate_password() for _ in range(20)}
    assert all(len(p) == 8 for p in passwords)
    assert len(passwords) > 1
