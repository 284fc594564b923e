"""
Synthetic coordinate generation bounded by the configured regions.
"""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional
import numpy as np

from .models import Reading, THREAT_LEVELS
from .region_catalog import RegionCatalog


ID_PREFIX = "dron-"
ID_ALPHABET = np.array(list("abcdefghijklmnopqrstuvwxyz0123456789"))
ID_TOKEN_LENGTH = 8


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CoordinateGenerator:
    """
    Produces one random Reading per call.

    Every random draw (region, coordinates, threat level and id token) comes
    from the injected numpy Generator, so a seeded generator yields a
    reproducible sequence of readings.
    """

    def __init__(
        self,
        catalog: RegionCatalog,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the generator.

        Args:
            catalog: Regions to draw from
            rng: Random number generator (optional)
            clock: Callable returning the current UTC time (optional)
        """
        self.catalog = catalog
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock or _utc_now
        # numpy Generators are not safe to share between threads
        self._lock = threading.Lock()

    def generate(self) -> Optional[Reading]:
        """
        Generate a reading in a randomly chosen region.

        Returns:
            A new Reading, or None when no regions are configured
        """
        if self.catalog.is_empty():
            return None

        with self._lock:
            region = self.catalog.choose(self.rng)
            latitude = self._uniform(region.lat_min, region.lat_max)
            longitude = self._uniform(region.lon_min, region.lon_max)
            threat_level = THREAT_LEVELS[int(self.rng.integers(len(THREAT_LEVELS)))]
            reading_id = self._new_id()

        return Reading(
            id=reading_id,
            region=region.name,
            latitude=latitude,
            longitude=longitude,
            observed_at=self.clock(),
            threat_level=threat_level,
        )

    def _uniform(self, low: float, high: float) -> float:
        """Draw from [low, high); returns low when the interval is degenerate."""
        if high <= low:
            return float(low)
        value = float(self.rng.uniform(low, high))
        # rng.uniform may round up onto the upper bound
        if value >= high:
            value = float(np.nextafter(high, low))
        return value

    def _new_id(self) -> str:
        token = self.rng.choice(ID_ALPHABET, size=ID_TOKEN_LENGTH)
        return ID_PREFIX + "".join(token)
