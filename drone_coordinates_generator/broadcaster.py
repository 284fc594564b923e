"""
Periodic broadcast of generated readings.
"""

from typing import Dict, Optional

from .generator import CoordinateGenerator
from .logging_config import ServiceLogger, log_exception
from .mqtt_publisher import MQTTPublisher
from .scheduler import BroadcastLoop, TickInfo


logger = ServiceLogger.get_logger(__name__)

BROADCAST_TOPIC = "coordinates-broadcast"
DEFAULT_INTERVAL_MS = 3000


class CoordinateBroadcaster:
    """
    Generates one reading per tick and publishes it to every subscriber.

    Readings broadcast here are not added to the query-side detection cache.
    """

    def __init__(
        self,
        generator: CoordinateGenerator,
        publisher: MQTTPublisher,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        topic: str = BROADCAST_TOPIC
    ):
        self.generator = generator
        self.publisher = publisher
        self.interval_ms = interval_ms
        self.topic = topic
        self.loop: Optional[BroadcastLoop] = None
        self.stats = {
            'ticks': 0,
            'published': 0,
            'skipped': 0,
            'publish_failures': 0
        }

    def broadcast(self, tick_info: Optional[TickInfo] = None) -> bool:
        """
        Run a single tick.

        Args:
            tick_info: Schedule information when driven by the loop

        Returns:
            True if a reading was published
        """
        self.stats['ticks'] += 1

        reading = self.generator.generate()
        if reading is None:
            self.stats['skipped'] += 1
            logger.warning("No reading generated: no regions configured")
            return False

        try:
            published = self.publisher.publish(self.topic, reading.to_dict())
        except Exception as e:
            self.stats['publish_failures'] += 1
            log_exception(logger, e, f"Failed to publish reading {reading.id}", include_traceback=False)
            return False

        if not published:
            self.stats['publish_failures'] += 1
            logger.error(f"Reading {reading.id} was not published to {self.topic}")
            return False

        self.stats['published'] += 1
        logger.info(
            f"Broadcast coordinate: ({reading.latitude}, {reading.longitude}) in {reading.region} "
            f"with threat level {reading.threat_level.value}"
        )
        if tick_info is not None and tick_info.lag_s > self.interval_ms / 1000.0:
            logger.debug(f"Tick {tick_info.tick_id} started {tick_info.lag_s:.3f}s late")
        return True

    def start(self) -> None:
        """Start broadcasting on a background thread."""
        if self.loop is not None and self.loop.is_running():
            return
        self.loop = BroadcastLoop(self.interval_ms / 1000.0, self.broadcast, name="coordinate-broadcaster")
        self.loop.start()

    def stop(self) -> None:
        """Cancel the broadcast schedule."""
        if self.loop is not None:
            self.loop.stop()
            self.loop = None

    def is_running(self) -> bool:
        return self.loop is not None and self.loop.is_running()

    def get_statistics(self) -> Dict[str, int]:
        return self.stats.copy()
