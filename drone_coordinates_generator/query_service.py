"""
Detection queries served from the in-memory cache.

There is no real backing store: an empty cache is seeded with freshly
generated readings, and any unknown id that looks like a generated one is
materialized on first request. The one exception is the sentinel id
``dron-nonexistent``, which always reports not found.
"""

from typing import List, Optional

from .cache import DetectionCache
from .generator import CoordinateGenerator, ID_PREFIX
from .logging_config import ServiceLogger
from .models import Reading


logger = ServiceLogger.get_logger(__name__)

DEFAULT_SEED_COUNT = 10
MISSING_SENTINEL_ID = ID_PREFIX + "nonexistent"


class QueryService:
    """List and point lookups over the detection cache."""

    def __init__(
        self,
        generator: CoordinateGenerator,
        cache: DetectionCache,
        seed_count: int = DEFAULT_SEED_COUNT,
        id_prefix: str = ID_PREFIX,
        missing_sentinel: str = MISSING_SENTINEL_ID
    ):
        self.generator = generator
        self.cache = cache
        self.seed_count = seed_count
        self.id_prefix = id_prefix
        self.missing_sentinel = missing_sentinel

    def list_detections(self) -> List[Reading]:
        """
        Return every cached reading, seeding the cache first if it is empty.

        Returns:
            Cached readings in insertion order
        """
        inserted = self.cache.seed_if_empty(self.generator.generate, self.seed_count)
        if inserted:
            logger.info(f"Seeded detection cache with {inserted} readings")
        return self.cache.values()

    def get_by_id(self, reading_id: str) -> Optional[Reading]:
        """
        Look up one reading, synthesizing it when the id is recognised.

        Args:
            reading_id: Requested reading id

        Returns:
            The reading, or None if it is not found
        """
        if reading_id == self.missing_sentinel:
            return None

        cached = self.cache.get(reading_id)
        if cached is not None:
            return cached

        if not self._is_synthesizable(reading_id):
            logger.debug(f"Detection {reading_id} not found")
            return None

        reading = self.cache.get_or_create(reading_id, self.generator.generate)
        if reading is None:
            logger.warning(f"Cannot synthesize detection {reading_id}: no regions configured")
        return reading

    def _is_synthesizable(self, reading_id: str) -> bool:
        return reading_id.startswith(self.id_prefix)
