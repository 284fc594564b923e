"""
In-memory detection store backing the query API.
"""

import threading
from typing import Callable, Dict, List, Optional

from .models import Reading


ReadingFactory = Callable[[], Optional[Reading]]


class DetectionCache:
    """
    Thread-safe mapping from reading id to Reading.

    Entries are never evicted. All check-then-insert sequences run under a
    single lock so concurrent callers asking for the same missing id end up
    sharing one entry.
    """

    def __init__(self):
        self._entries: Dict[str, Reading] = {}
        self._lock = threading.Lock()

    def get(self, reading_id: str) -> Optional[Reading]:
        with self._lock:
            return self._entries.get(reading_id)

    def put(self, reading: Reading) -> None:
        """Insert or replace the entry keyed by ``reading.id``."""
        with self._lock:
            self._entries[reading.id] = reading

    def get_or_create(self, reading_id: str, factory: ReadingFactory) -> Optional[Reading]:
        """
        Return the cached reading for ``reading_id``, creating it if absent.

        The factory runs at most once per missing id. Its result is stored
        under ``reading_id`` regardless of the id it carries; a None result
        stores nothing.

        Args:
            reading_id: Key to look up
            factory: Callable producing the reading to insert

        Returns:
            The cached or newly created reading, or None
        """
        with self._lock:
            existing = self._entries.get(reading_id)
            if existing is not None:
                return existing

            created = factory()
            if created is None:
                return None

            if created.id != reading_id:
                created = created.with_id(reading_id)
            self._entries[reading_id] = created
            return created

    def seed_if_empty(self, factory: ReadingFactory, count: int) -> int:
        """
        Populate an empty cache with up to ``count`` readings.

        Returns:
            Number of readings inserted (0 if the cache was not empty)
        """
        with self._lock:
            if self._entries:
                return 0

            inserted = 0
            for _ in range(count):
                reading = factory()
                if reading is not None:
                    self._entries[reading.id] = reading
                    inserted += 1
            return inserted

    def values(self) -> List[Reading]:
        """Snapshot of all entries in insertion order."""
        with self._lock:
            return list(self._entries.values())

    def is_empty(self) -> bool:
        with self._lock:
            return not self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, reading_id: object) -> bool:
        with self._lock:
            return reading_id in self._entries
