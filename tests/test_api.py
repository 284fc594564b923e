"""
Tests for the HTTP query API.
"""

import re

import pytest
from httpx import ASGITransport, AsyncClient

from drone_coordinates_generator.api import create_app
from drone_coordinates_generator.config import ServiceConfig
from drone_coordinates_generator.service import DroneCoordinatesService


TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z"


class TestDetectionsEndpoint:
    """Test cases for /api/detections."""

    @pytest.mark.asyncio
    async def test_list_returns_ten_seeded_detections(self, client):
        response = await client.get("/api/detections")

        assert response.status_code == 200
        detections = response.json()
        assert len(detections) == 10
        for detection in detections:
            assert set(detection) == {"id", "city", "latitude", "longitude", "timestamp", "threatLevel"}
            assert detection["id"].startswith("dron-")
            assert detection["city"] == "Medellín"
            assert 6.20 <= detection["latitude"] < 6.35
            assert -75.65 <= detection["longitude"] < -75.50
            assert detection["threatLevel"] in ("LOW", "MEDIUM", "HIGH")
            assert re.fullmatch(TIMESTAMP_PATTERN, detection["timestamp"])

    @pytest.mark.asyncio
    async def test_list_is_stable_between_calls(self, client):
        first = (await client.get("/api/detections")).json()
        second = (await client.get("/api/detections")).json()

        assert first == second

    @pytest.mark.asyncio
    async def test_list_with_no_regions_is_empty(self, mock_publisher):
        service = DroneCoordinatesService(ServiceConfig(offline_mode=True), publisher=mock_publisher)
        app = create_app(service)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/detections")
            missing = await ac.get("/api/detections/dron-XYZ")

        assert response.status_code == 200
        assert response.json() == []
        assert missing.status_code == 404


class TestDetectionByIdEndpoint:
    """Test cases for /api/detections/{id}."""

    @pytest.mark.asyncio
    async def test_get_listed_detection(self, client):
        listed = (await client.get("/api/detections")).json()

        response = await client.get(f"/api/detections/{listed[0]['id']}")

        assert response.status_code == 200
        assert response.json() == listed[0]

    @pytest.mark.asyncio
    async def test_unseen_prefixed_id_is_synthesized(self, client):
        response = await client.get("/api/detections/dron-XYZ")

        assert response.status_code == 200
        detection = response.json()
        assert detection["id"] == "dron-XYZ"
        assert detection["city"] == "Medellín"

        again = await client.get("/api/detections/dron-XYZ")
        assert again.json() == detection

    @pytest.mark.asyncio
    async def test_synthesized_detection_joins_the_list(self, client):
        await client.get("/api/detections/dron-XYZ")

        detections = (await client.get("/api/detections")).json()

        assert [detection["id"] for detection in detections] == ["dron-XYZ"]

    @pytest.mark.asyncio
    async def test_sentinel_id_not_found(self, client):
        response = await client.get("/api/detections/dron-nonexistent")

        assert response.status_code == 404
        assert response.json() == {"detail": "Detection not found"}

    @pytest.mark.asyncio
    async def test_unprefixed_id_not_found(self, client):
        response = await client.get("/api/detections/drone-123")

        assert response.status_code == 404


class TestHealthEndpoint:
    """Test cases for /api/health."""

    @pytest.mark.asyncio
    async def test_health_returns_up(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UP"
        assert data["service"] == "Drone Coordinates Generator"
        assert re.fullmatch(TIMESTAMP_PATTERN, data["timestamp"])

    @pytest.mark.asyncio
    async def test_health_uses_configured_service_name(self, mock_publisher):
        config = ServiceConfig(offline_mode=True, service_name="Test Generator")
        app = create_app(DroneCoordinatesService(config, publisher=mock_publisher))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/api/health")

        assert response.json()["service"] == "Test Generator"

    @pytest.mark.asyncio
    async def test_cross_origin_requests_allowed(self, client):
        response = await client.get("/api/health", headers={"Origin": "http://dashboard.local"})

        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_health_does_not_touch_cache(self, client, service):
        await client.get("/api/health")

        assert len(service.cache) == 0
