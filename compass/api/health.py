"""Health check endpoint."""

from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from compass import __version__

router = APIRouter(tags=["health"])

SERVICE_NAME = "Compass API"


class HealthStatus(BaseModel):
    """Health check response."""

    status: Literal["ok"]
    service: str
    version: str


@router.get("/healthz", response_model=HealthStatus)
async def healthz() -> HealthStatus:
    """Liveness check; the service has no infrastructure dependencies."""
    return HealthStatus(status="ok", service=SERVICE_NAME, version=__version__)
