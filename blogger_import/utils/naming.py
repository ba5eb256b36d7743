from __future__ import annotations

import time
import uuid
from typing import Callable


class UniqueNames:
    """
    Source of unique values for required fields that have no value in the
    export (untitled entries, placeholder emails, media names).

    One instance is created per import run and handed to every stage, so the
    counter never leaks between runs.  The clock and token factory can be
    replaced to make output deterministic.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._counter = 0
        self._clock = clock
        self._token_factory = token_factory

    def next(self, prefix: str) -> str:
        value = f"{prefix}-{self._counter}-{int(self._clock() * 1000)}"
        self._counter += 1
        return value

    def token(self) -> str:
        return self._token_factory()
