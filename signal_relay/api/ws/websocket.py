from typing import Any, Awaitable, Callable

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from signal_relay.constants import WS_NORMAL_CLOSURE_CODE
from signal_relay.core.hub import SignalingHub, SignalingSession
from signal_relay.exceptions import TransportClosedError
from signal_relay.logging import clear_log_context, logger


class StarletteWebSocketTransport:
    """
    Transport adapter writing signaling frames to a Starlette WebSocket.

    ASGI has no ping or pong events. Protocol pings are sent by the ASGI
    server (uvicorn's `ws_ping_interval`), which closes the socket when a
    pong is late. A heartbeat that finds the socket still open therefore
    counts as a pong and is reported through `on_keepalive`.
    """

    def __init__(
        self,
        websocket: WebSocket,
        on_keepalive: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.websocket = websocket
        self.on_keepalive = on_keepalive

    async def send_text(self, text: str) -> None:
        try:
            await self.websocket.send_text(text)
        except (WebSocketDisconnect, RuntimeError, OSError) as ex:
            raise TransportClosedError(str(ex)) from ex

    async def send_ping(self) -> None:
        if (
            self.websocket.client_state != WebSocketState.CONNECTED
            or self.websocket.application_state != WebSocketState.CONNECTED
        ):
            raise TransportClosedError("websocket is no longer connected")

        logger.debug(f"Heartbeat due for websocket ({id(self.websocket)})")
        if self.on_keepalive is not None:
            await self.on_keepalive()

    async def close(self, code: int = WS_NORMAL_CLOSURE_CODE) -> None:
        try:
            await self.websocket.close(code=code)
        except (WebSocketDisconnect, RuntimeError, OSError) as ex:
            raise TransportClosedError(str(ex)) from ex


class SignalingWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint bridging Starlette connections to the signaling hub.

    Accepts the connection, opens a SignalingSession on the application's
    hub, feeds every inbound frame to it, and runs the session cleanup when
    the client disconnects or the read loop fails.
    """

    encoding = None  # Text and binary frames are both handled

    session: SignalingSession | None = None

    async def dispatch(self) -> None:
        """
        Manages the WebSocket connection lifecycle.

        1. Creates a WebSocket instance from scope, receive and send.
        2. Calls on_connect, which accepts and opens the signaling session.
        3. Receives messages until "websocket.disconnect", passing each
           "websocket.receive" message to on_receive.
        4. On an unexpected error sets WS_1011_INTERNAL_ERROR and re-raises.
        5. Always calls on_disconnect with the final close code.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        await self.on_connect(websocket)

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    await self.on_receive(websocket, message)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except WebSocketDisconnect as exc:
            close_code = exc.code
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)

    @property
    def hub(self) -> SignalingHub:
        return self.scope["app"].state.hub

    async def on_connect(self, websocket: WebSocket) -> None:
        """Accepts the connection and opens a signaling session for it."""
        await websocket.accept()

        transport = StarletteWebSocketTransport(websocket)
        self.session = await self.hub.accept(transport)
        transport.on_keepalive = self.session.receive_pong
        logger.debug(
            f"websocket object ({id(websocket)}) bound to connection "
            f"{self.session.connection_id}"
        )

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        raise NotImplementedError

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """Runs the session cleanup for a client-initiated close or error."""
        if self.session is not None:
            reason = (
                "client_close"
                if close_code != status.WS_1011_INTERNAL_ERROR
                else "transport_error"
            )
            await self.session.close(reason=reason)

        logger.debug(f"Client disconnected with code {close_code}")
        clear_log_context()
