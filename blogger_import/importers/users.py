"""
Resolution of entry authors to users in the content store.

Authors are matched by exact username.  Missing users are created with a
placeholder email, the writer access level and a random password that is
returned to the caller once.  Users are handled strictly one at a time and
the first failure aborts the whole step.
"""

from __future__ import annotations

import secrets
import string
from typing import Dict, List

from blogger_import.config import ImportSettings
from blogger_import.models import ACCESS_WRITER, Feed, UserStub
from blogger_import.store.protocols import UserRepository
from blogger_import.utils.errors import PersistenceError, log_message, report_error, report_ok
from blogger_import.utils.naming import UniqueNames

PASSWORD_LENGTH = 8
_PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def distinct_authors(feed: Feed) -> List[str]:
    """Author usernames in first-seen order, without duplicates."""
    seen = set()
    usernames: List[str] = []
    for entry in feed.entries:
        if entry.author and entry.author not in seen:
            seen.add(entry.author)
            usernames.append(entry.author)
    return usernames


def resolve_users(
    feed: Feed,
    settings: ImportSettings,
    repo: UserRepository,
    names: UniqueNames,
) -> Dict[str, UserStub]:
    """
    Map every author username in ``feed`` to a persisted user.

    :param feed: The parsed export.
    :param settings: Nothing happens unless ``create_new_users`` is enabled.
    :param repo: User repository used for lookups and creation.
    :param names: Source of the unique token embedded in placeholder emails.
    :return: ``username -> UserStub`` in first-seen order.  Only users created
        by this call carry ``generated_password``.
    :raises PersistenceError: on the first lookup or creation failure.
    """
    users: Dict[str, UserStub] = {}
    if not settings.create_new_users:
        return users

    log_message("Parsing users...", level="DEBUG")
    for username in distinct_authors(feed):
        try:
            existing = repo.find_user_by_username(username)
            if existing is not None:
                log_message(f"User [{username}] already exists", level="DEBUG")
                users[username] = UserStub(username=username, email=existing.email, admin=existing.admin, id=existing.id)
                report_ok("USER_EXISTS", {"username": username})
                continue

            password = generate_password()
            stub = UserStub(
                username=username,
                email=f"user_{names.token()}@placeholder.com",
                admin=ACCESS_WRITER,
            )
            stub.id = repo.create_user(stub, password)
        except PersistenceError as e:
            report_error("USER_PERSIST", {"username": username}, e)
            raise
        stub.generated_password = password
        users[username] = stub
        log_message(f"Created user [{username}]", level="DEBUG")
        report_ok("USER_CREATED", {"username": username}, {"id": stub.id})
    return users
