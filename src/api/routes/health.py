"""Liveness endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from src.api.schemas import utc_timestamp

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str


@router.get("/health", response_model=HealthResponse)
async def liveness():
    """Liveness probe.

    Returns 200 if the process is alive. Upstream services are checked by
    /api/upload/health and /api/chat/health instead.
    """
    return HealthResponse(status="OK", timestamp=utc_timestamp())
