"""
Signaling core: connection registry, liveness supervision, routing and
per-connection outbound dispatch.
"""

from signal_relay.core.hub import SignalingHub, SignalingSession
from signal_relay.core.identity import IdentityAllocator
from signal_relay.core.outbound import (
    OutboundDispatcher,
    OutboundFrame,
    OutboundQueue,
)
from signal_relay.core.registry import ConnectionRecord, ConnectionRegistry

__all__ = [
    "ConnectionRecord",
    "ConnectionRegistry",
    "IdentityAllocator",
    "OutboundDispatcher",
    "OutboundFrame",
    "OutboundQueue",
    "SignalingHub",
    "SignalingSession",
]
