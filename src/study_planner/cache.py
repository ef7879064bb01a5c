"""Time-boxed in-process read cache for user, syllabus, progress and notes reads."""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

USER_TTL = 5 * 60
SYLLABUS_TTL = 10 * 60
PROGRESS_TTL = 2 * 60
NOTES_TTL = 5 * 60

DEFAULT_TTLS = {
    "user": USER_TTL,
    "syllabus": SYLLABUS_TTL,
    "progress": PROGRESS_TTL,
    "notes": NOTES_TTL,
}


@dataclass
class CacheEntry:
    value: Any
    stored_at: float


class ReadCache:
    """Memoizes store reads per (entity, user, course) until the entity's TTL elapses.

    Writers must call ``invalidate`` for the keys they touch before returning,
    so a read that follows a write in the same process never sees the old value.
    The cache is local to one process; nothing is shared across processes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, ttls: Optional[dict] = None):
        self._clock = clock
        self._ttls = dict(DEFAULT_TTLS)
        if ttls:
            self._ttls.update(ttls)
        self._entries: dict[tuple, CacheEntry] = {}

    def _key(self, entity: str, user_id: str, course_id: Optional[str]) -> tuple:
        if entity not in self._ttls:
            raise KeyError(f"Unknown cache entity: {entity}")
        return (entity, user_id, course_id)

    def ttl(self, entity: str) -> float:
        return self._ttls[entity]

    def get(self, entity: str, user_id: str, course_id: Optional[str] = None) -> Any:
        key = self._key(entity, user_id, course_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        age = self._clock() - entry.stored_at
        if age >= self._ttls[entity]:
            del self._entries[key]
            return None
        logger.debug("%s cache hit: user=%s course=%s age=%.1fs", entity, user_id, course_id, age)
        return entry.value

    def set(self, entity: str, user_id: str, value: Any, course_id: Optional[str] = None) -> None:
        key = self._key(entity, user_id, course_id)
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, entity: str, user_id: str, course_id: Optional[str] = None) -> None:
        self._entries.pop(self._key(entity, user_id, course_id), None)

    def invalidate_user(self, user_id: str) -> None:
        """Drop every cached entity belonging to a user, across all courses."""
        for key in [k for k in self._entries if k[1] == user_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
