"""
Generation of the created-users CSV file.

New users are created with a random password that is shown only once.  The
:func:`generate_users_csv` helper writes the usernames, placeholder emails and
one-time passwords to a CSV file so that the credentials can be handed out
to the authors after the import.
"""

from __future__ import annotations

import csv
import os
from typing import Iterable

from blogger_import.models import UserStub


def generate_users_csv(users: Iterable[UserStub], *, out_path: str = "reports/created_users.csv") -> str:
    """Write one row per user.

    Parameters
    ----------
    users:
        The users returned by the import.  Pre-existing users are written with
        an empty password column.
    out_path:
        Location of the CSV file to be written.  The parent directory is
        created automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Username", "Email", "Password"])
        for user in users:
            writer.writerow([user.username, user.email or "", user.generated_password or ""])
    return out_path
