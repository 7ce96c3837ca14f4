"""
Protocol for the transport the signaling core writes to.

Uses structural subtyping (Protocol): any object with these coroutines can
back a signaling session, e.g. the Starlette WebSocket adapter in
signal_relay.api.ws.websocket or an in-memory transport in tests.
"""

from typing import Protocol

from signal_relay.constants import WS_NORMAL_CLOSURE_CODE


class Transport(Protocol):
    """
    Write half of a duplex text-frame stream.

    Implementations raise TransportClosedError (or OSError/RuntimeError)
    when the stream can no longer be written to.
    """

    async def send_text(self, text: str) -> None:
        """Write one text frame."""
        ...

    async def send_ping(self) -> None:
        """Write one heartbeat ping frame."""
        ...

    async def close(self, code: int = WS_NORMAL_CLOSURE_CODE) -> None:
        """Write a close frame and shut the stream."""
        ...
