"""Single-slot memo for exhaustively fetched, filtered show lists."""

from __future__ import annotations

import logging
import time
from typing import Callable

from listings.models import CacheKey, Show

log = logging.getLogger(__name__)

#: Seconds a filtered result set stays valid.
DEFAULT_TTL = 5 * 60


class ResultCache:
    """Holds the most recent filtered result set and nothing else.

    A store always overwrites the slot, so a slow response for an old filter
    can replace a newer entry. Callers that care can compare keys.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._key: CacheKey | None = None
        self._shows: list[Show] = []
        self._stored_at: float = 0.0

    @property
    def key(self) -> CacheKey | None:
        return self._key

    def get(self, key: CacheKey) -> list[Show] | None:
        """Return the cached shows for *key*, or ``None`` when missing or stale."""
        if self._key != key:
            return None
        age = self._clock() - self._stored_at
        if age >= self.ttl:
            log.debug("Cache entry for %s expired (%.0fs old)", key.city, age)
            return None
        return self._shows

    def put(self, key: CacheKey, shows: list[Show]) -> None:
        self._key = key
        self._shows = list(shows)
        self._stored_at = self._clock()
        log.debug("Cached %d show(s) for %s", len(shows), key.city)

    def clear(self) -> None:
        self._key = None
        self._shows = []
        self._stored_at = 0.0
