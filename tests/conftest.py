"""
Shared fixtures for the drone coordinates generator tests.

No test needs a live MQTT broker: services are built in offline mode or
with a Mock publisher, and HTTP tests go through httpx's ASGITransport,
which does not run the FastAPI lifespan (so no broadcast thread starts).
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import numpy as np
import pytest
from httpx import ASGITransport, AsyncClient

from drone_coordinates_generator.config import ServiceConfig
from drone_coordinates_generator.logging_config import ServiceLogger
from drone_coordinates_generator.models import Reading, ThreatLevel
from drone_coordinates_generator.region_catalog import Region, RegionCatalog


FIXED_TIME = datetime(2025, 8, 25, 15, 30, 0, tzinfo=timezone.utc)

MEDELLIN = {"name": "Medellín", "lat_range": [6.20, 6.35], "lon_range": [-75.65, -75.50]}
BOGOTA = {"name": "Bogotá", "lat_range": [4.50, 4.75], "lon_range": [-74.20, -74.00]}


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    ServiceLogger.reset()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def medellin_catalog():
    return RegionCatalog([Region.from_dict(MEDELLIN)])


@pytest.fixture
def two_region_catalog():
    return RegionCatalog.from_config([MEDELLIN, BOGOTA])


@pytest.fixture
def sample_reading():
    return Reading(
        id="dron-test123",
        region="Medellín",
        latitude=6.2674,
        longitude=-75.5682,
        observed_at=FIXED_TIME,
        threat_level=ThreatLevel.HIGH,
    )


@pytest.fixture
def mock_publisher():
    publisher = Mock()
    publisher.publish.return_value = True
    publisher.connect.return_value = True
    publisher.get_statistics.return_value = {}
    return publisher


@pytest.fixture
def offline_config():
    return ServiceConfig(regions=[MEDELLIN], offline_mode=True, deterministic_seed=7)


@pytest.fixture
def service(offline_config, mock_publisher):
    from drone_coordinates_generator.service import DroneCoordinatesService

    return DroneCoordinatesService(offline_config, publisher=mock_publisher)


@pytest.fixture
async def client(service):
    """
    HTTPX async client wired to an app around ``service``.

    Usage:
        async def test_something(client):
            response = await client.get("/api/health")
    """
    from drone_coordinates_generator.api import create_app

    app = create_app(service)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
