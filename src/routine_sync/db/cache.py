"""Short-lived cache of each user's active routine."""

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..models.routine import Routine

# Five minutes
CACHE_DURATION = 5 * 60


@dataclass
class _Entry:
    routine: Routine | None
    stored_at: float


class ActiveRoutineCache:
    """Per-user cache of the active routine lookup.

    ``None`` results are cached too, so "no active routine" does not hit the
    database on every schedule render. Every routine mutation must call
    ``invalidate``.
    """

    def __init__(
        self,
        ttl: float = CACHE_DURATION,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, user_id: str) -> tuple[bool, Routine | None]:
        """Return (hit, routine). Expired entries count as misses."""
        entry = self._entries.get(user_id)
        if entry is None:
            return False, None
        if self._clock() - entry.stored_at >= self.ttl:
            del self._entries[user_id]
            return False, None
        return True, entry.routine

    def set(self, user_id: str, routine: Routine | None) -> None:
        self._entries[user_id] = _Entry(routine=routine, stored_at=self._clock())

    def invalidate(self, user_id: str | None = None) -> None:
        """Drop one user's entry, or everything when no user is given."""
        if user_id is None:
            self._entries.clear()
        else:
            self._entries.pop(user_id, None)
