"""
Drone Coordinates Generator Package

Generates synthetic drone detection readings inside configured geographic
regions, broadcasts them over MQTT on a fixed cadence and serves them
through an HTTP query API.
"""

__version__ = "0.1.0"
__author__ = "Drone Coordinates Generator"

from .config import ServiceConfig
from .region_catalog import Region, RegionCatalog
from .models import Reading, ThreatLevel
from .generator import CoordinateGenerator
from .cache import DetectionCache
from .query_service import QueryService
from .mqtt_publisher import MQTTPublisher
from .broadcaster import CoordinateBroadcaster, BROADCAST_TOPIC
from .service import DroneCoordinatesService
from .cli import main as cli_main

__all__ = [
    "ServiceConfig",
    "Region",
    "RegionCatalog",
    "Reading",
    "ThreatLevel",
    "CoordinateGenerator",
    "DetectionCache",
    "QueryService",
    "MQTTPublisher",
    "CoordinateBroadcaster",
    "BROADCAST_TOPIC",
    "DroneCoordinatesService",
    "cli_main"
]
