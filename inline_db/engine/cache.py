# File: /inline_db/engine/cache.py | Version: 1.0 | Title: Read-through snapshot cache keyed by database id
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from inline_db.engine.snapshot import DatabaseSnapshot

logger = logging.getLogger(__name__)

Loader = Callable[[str], Optional[DatabaseSnapshot]]


class SnapshotCache:
    """
    Holds immutable snapshots (schema + raw entries) per database id.

    Every successful mutation calls ``invalidate(database_id)`` after commit;
    entries also expire after ``ttl`` seconds so a write committed by another
    process is picked up by periodic refresh. Misses (deleted databases) are
    never cached.
    """

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._items: Dict[str, Tuple[float, DatabaseSnapshot]] = {}
        # bumped by invalidate(); a load that raced an invalidation is not stored
        self._generations: Dict[str, int] = {}
        self.hits = 0
        self.misses = 0

    def get(self, database_id: str, loader: Loader) -> Optional[DatabaseSnapshot]:
        now = self._clock()
        with self._lock:
            item = self._items.get(database_id)
            if item is not None and now - item[0] < self.ttl:
                self.hits += 1
                return item[1]
            self.misses += 1
            generation = self._generations.get(database_id, 0)

        snapshot = loader(database_id)
        if snapshot is not None:
            with self._lock:
                if self._generations.get(database_id, 0) == generation:
                    self._items[database_id] = (now, snapshot)
        return snapshot

    def invalidate(self, database_id: str) -> None:
        with self._lock:
            dropped = self._items.pop(database_id, None)
            self._generations[database_id] = self._generations.get(database_id, 0) + 1
        if dropped is not None:
            logger.debug("snapshot for database %s invalidated", database_id)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._generations.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._items), "hits": self.hits, "misses": self.misses}
