"""
Process supervisor for the drone coordinates generator.

This module provides the DroneCoordinatesService class that wires all
components from a ServiceConfig and owns their start/stop lifecycle.
"""

import signal
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import numpy as np

from .broadcaster import CoordinateBroadcaster
from .cache import DetectionCache
from .config import ServiceConfig
from .error_handling import PublishError, create_error_summary
from .generator import CoordinateGenerator
from .logging_config import ServiceLogger, log_exception
from .mqtt_publisher import MQTTPublisher
from .query_service import QueryService
from .region_catalog import RegionCatalog


logger = ServiceLogger.get_logger(__name__)


class DroneCoordinatesService:
    """
    Owns every component of the running service.

    The broadcaster and the query service share one generator but not the
    detection cache: broadcast readings are never queryable.
    """

    def __init__(
        self,
        config: ServiceConfig,
        publisher: Optional[MQTTPublisher] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Build all components.

        Args:
            config: Validated service configuration
            publisher: Transport to broadcast through (defaults to MQTTPublisher)
            rng: Random number generator (defaults to one seeded from config)
            clock: Timestamp source for generated readings

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config.validate()
        self.config = config
        self.running = False
        self.shutdown_event = threading.Event()
        self.started_at: Optional[float] = None

        if rng is None:
            if config.deterministic_seed is not None:
                rng = np.random.default_rng(config.deterministic_seed)
                logger.info(f"Using deterministic seed: {config.deterministic_seed}")
            else:
                rng = np.random.default_rng()

        self.catalog = RegionCatalog.from_config(config.regions)
        if self.catalog.is_empty():
            logger.warning("No regions configured: no readings will be generated")
        else:
            logger.info(f"Loaded {len(self.catalog)} regions: {', '.join(self.catalog.names())}")

        self.generator = CoordinateGenerator(self.catalog, rng, clock)
        self.cache = DetectionCache()
        self.query_service = QueryService(self.generator, self.cache)
        self.publisher = publisher if publisher is not None else MQTTPublisher(config)
        self.broadcaster = CoordinateBroadcaster(
            self.generator,
            self.publisher,
            interval_ms=config.interval_ms,
            topic=config.mqtt_topic
        )

    def start(self) -> None:
        """
        Connect the publisher and start broadcasting.

        A broker that cannot be reached is logged but does not prevent the
        service from starting; each tick then records a publish failure.
        """
        if self.running:
            return

        try:
            self.publisher.connect()
        except PublishError as e:
            logger.error(f"MQTT connection failed, broadcasting without a broker: {e}")

        self.broadcaster.start()
        self.running = True
        self.started_at = time.time()
        self.shutdown_event.clear()
        logger.info(f"Broadcasting to {self.config.mqtt_topic} every {self.config.interval_ms}ms")

    def stop(self) -> None:
        """Stop broadcasting and disconnect, collecting any cleanup errors."""
        cleanup_errors: List[Exception] = []

        try:
            self.broadcaster.stop()
        except Exception as e:
            cleanup_errors.append(e)
            logger.error(f"Error stopping broadcaster: {e}")

        try:
            self.publisher.disconnect()
        except Exception as e:
            cleanup_errors.append(e)
            logger.error(f"Error disconnecting publisher: {e}")

        self.running = False
        self.shutdown_event.set()

        stats = self.broadcaster.get_statistics()
        logger.info(f"Broadcast statistics: {stats['published']} published, "
                    f"{stats['skipped']} skipped, {stats['publish_failures']} failures")

        if cleanup_errors:
            error_summary = create_error_summary(cleanup_errors)
            logger.warning(f"Shutdown completed with {error_summary['total_errors']} errors")
        else:
            logger.info("Shutdown completed successfully")

    def shutdown(self) -> None:
        """Request that run_forever() return."""
        self.shutdown_event.set()

    def run_forever(self) -> Dict[str, Any]:
        """
        Broadcast until SIGINT/SIGTERM, without serving the query API.

        Returns:
            Final statistics
        """
        self._setup_signal_handlers()
        self.start()
        try:
            while not self.shutdown_event.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        except Exception as e:
            log_exception(logger, e, "Broadcast supervisor failed")
            raise
        finally:
            self.stop()
        return self.get_statistics()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signal_names = {
                signal.SIGINT: "SIGINT (Ctrl+C)",
                signal.SIGTERM: "SIGTERM"
            }
            signal_name = signal_names.get(signum, f"signal {signum}")
            logger.info(f"Received {signal_name}, initiating graceful shutdown...")
            self.shutdown()

        try:
            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)
            logger.debug("Signal handlers configured for graceful shutdown")
        except ValueError as e:
            # Only the main thread may install handlers
            logger.warning(f"Failed to setup signal handlers: {e}")

    def is_running(self) -> bool:
        return self.running and not self.shutdown_event.is_set()

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get current service statistics.

        Returns:
            Dictionary with broadcast, publisher and cache statistics
        """
        uptime_s = time.time() - self.started_at if self.started_at else 0.0
        return {
            'broadcast': self.broadcaster.get_statistics(),
            'publishing': self.publisher.get_statistics(),
            'cache': {'size': len(self.cache)},
            'regions': self.catalog.names(),
            'uptime_s': uptime_s
        }
