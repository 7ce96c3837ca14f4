from typing import Any

from fastapi import APIRouter
from starlette.websockets import WebSocket

from signal_relay.api.ws.websocket import SignalingWebSocketEndpoint
from signal_relay.logging import logger

router = APIRouter()


@router.websocket_route("/ws")
class Signaling(SignalingWebSocketEndpoint):
    """
    WebSocket endpoint relaying WebRTC signaling between peers.

    Text frames are decoded and routed by the hub; binary frames only count
    as activity for the idle timeout.
    """

    async def on_receive(self, websocket: WebSocket, data: dict[str, Any]):
        """
        Hands one received ASGI message to the signaling session.

        Args:
            websocket: The WebSocket connection instance.
            data: The raw "websocket.receive" message.
        """
        if self.session is None:
            return

        if (text := data.get("text")) is not None:
            await self.session.receive_text(text)
        elif (payload := data.get("bytes")) is not None:
            await self.session.receive_bytes(payload)
        else:
            logger.debug(f"Received empty frame on websocket ({id(websocket)})")
