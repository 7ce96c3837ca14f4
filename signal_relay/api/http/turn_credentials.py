"""ICE server configuration for browser peers."""

from fastapi import APIRouter
from pydantic import BaseModel

from signal_relay.settings import app_settings

router = APIRouter()


class IceServer(BaseModel):
    urls: str | list[str]
    username: str | None = None
    credential: str | None = None


class IceServersResponse(BaseModel):
    iceServers: list[IceServer]


@router.get(
    "/api/turn-credentials",
    response_model=IceServersResponse,
    response_model_exclude_none=True,
    summary="STUN/TURN servers for RTCPeerConnection",
    tags=["webrtc"],
)
async def turn_credentials() -> IceServersResponse:
    """
    Return the ICE servers browsers should pass to RTCPeerConnection.

    STUN servers are listed one per entry; TURN servers are grouped in a
    single entry carrying the credentials from settings. The TURN entry is
    omitted when no TURN URLs are configured.
    """
    servers = [IceServer(urls=url) for url in app_settings.STUN_URLS]

    if app_settings.TURN_URLS:
        servers.append(
            IceServer(
                urls=app_settings.TURN_URLS,
                username=app_settings.TURN_USERNAME,
                credential=app_settings.TURN_CREDENTIAL,
            )
        )

    return IceServersResponse(iceServers=servers)
