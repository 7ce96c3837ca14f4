"""Prometheus scrape endpoint."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter()


@router.get(
    "/metrics",
    response_class=PlainTextResponse,
    summary="Prometheus metrics endpoint",
    tags=["metrics"],
)
async def metrics() -> PlainTextResponse:
    """
    Serve every registered collector in the Prometheus text format.

    Scrapes of this path (and of /health) are kept out of the uvicorn
    access log by `signal_relay.uvicorn_filters.ExcludeMetricsFilter`.
    """
    return PlainTextResponse(
        generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST
    )
