"""
Type definitions and aliases for the signaling core.

Example:
    ```python
    from signal_relay.types import ConnectionId


    def lookup(connection_id: ConnectionId) -> OutboundQueue | None:
        ...
    ```
"""

from typing import Literal, NewType

ConnectionId = NewType("ConnectionId", int)
"""Type-safe connection identity issued by the IdentityAllocator."""

FrameKind = Literal["text", "ping", "close"]
"""Kinds of frames the outbound dispatcher can write to a transport."""

DropReason = Literal["malformed", "unknown_target", "server_only"]
"""Reasons an inbound frame is dropped without delivery."""
