"""
HTTP query API.

Routes:
  GET /api/detections        all cached detections (seeded on first call)
  GET /api/detections/{id}   one detection, 404 when not found
  GET /api/health            liveness

The FastAPI lifespan starts the broadcaster with the server and stops it
on shutdown, so one process serves both the query API and the broadcast.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from . import __version__
from .logging_config import ServiceLogger
from .models import Reading, ThreatLevel, format_timestamp_utc
from .query_service import QueryService
from .service import DroneCoordinatesService


logger = ServiceLogger.get_logger(__name__)
router = APIRouter()


class DetectionResponse(BaseModel):
    id: str
    city: str
    latitude: float
    longitude: float
    timestamp: str
    threatLevel: ThreatLevel


class HealthResponse(BaseModel):
    status: str  # Always "UP" while the process serves requests
    timestamp: str
    service: str


def _to_response(reading: Reading) -> DetectionResponse:
    return DetectionResponse(**reading.to_dict())


def get_service(request: Request) -> DroneCoordinatesService:
    return request.app.state.service


def get_query_service(service: DroneCoordinatesService = Depends(get_service)) -> QueryService:
    return service.query_service


# Sync handlers run in the threadpool; the cache lock serialises them
@router.get("/detections", response_model=List[DetectionResponse], summary="List detections")
def list_detections(query_service: QueryService = Depends(get_query_service)) -> List[DetectionResponse]:
    return [_to_response(reading) for reading in query_service.list_detections()]


@router.get("/detections/{detection_id}", response_model=DetectionResponse, summary="Get one detection")
def get_detection(detection_id: str, query_service: QueryService = Depends(get_query_service)) -> DetectionResponse:
    reading = query_service.get_by_id(detection_id)
    if reading is None:
        raise HTTPException(status_code=404, detail="Detection not found")
    return _to_response(reading)


@router.get("/health", response_model=HealthResponse, summary="Service health check")
def health_check(service: DroneCoordinatesService = Depends(get_service)) -> HealthResponse:
    return HealthResponse(
        status="UP",
        timestamp=format_timestamp_utc(datetime.now(timezone.utc)),
        service=service.config.service_name,
    )


def create_app(service: DroneCoordinatesService) -> FastAPI:
    """
    Build the FastAPI application around a service instance.

    Args:
        service: Service whose query layer backs the routes

    Returns:
        Configured FastAPI app
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {service.config.service_name}")
        # Broker connection may retry for several seconds
        await run_in_threadpool(service.start)
        yield
        logger.info(f"Shutting down {service.config.service_name}")
        await run_in_threadpool(service.stop)

    app = FastAPI(
        title=service.config.service_name,
        description="Synthetic drone detection readings over MQTT and HTTP.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api", tags=["detections"])
    return app
