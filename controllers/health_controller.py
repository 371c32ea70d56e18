import time

from fastapi import APIRouter

from constants import DEFAULT_HEALTHCHECK_PATH, SERVICE_VERSION
from models.contact import HealthResponse

PROCESS_STARTED_AT = time.monotonic()


async def health_check():
    """Service healthcheck: status, uptime in seconds and version."""
    return HealthResponse(
        status="ok",
        uptime=round(time.monotonic() - PROCESS_STARTED_AT, 3),
        version=SERVICE_VERSION,
    )


def build_health_router(path: str = DEFAULT_HEALTHCHECK_PATH) -> APIRouter:
    router = APIRouter(tags=["Health"])
    router.add_api_route(path, health_check, methods=["GET"], response_model=HealthResponse)
    return router
