"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    connections: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check(request: Request) -> HealthResponse:
    """
    Check health status of the signaling relay.

    Returns:
        HealthResponse: Service status and the number of live signaling
        connections in the registry.
    """
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        return HealthResponse(status="starting", connections=0)

    return HealthResponse(status="healthy", connections=len(hub.registry))
