"""
Signaling hub and per-connection sessions.

The hub is the process-wide entry point the transport layer talks to: it
owns the identity allocator, the connection registry and the message
router. Each accepted stream gets a SignalingSession that wires the stream
to the core and owns that connection's dispatcher and liveness supervisor.

Lifecycle of a session:
1. `SignalingHub.accept` allocates an identity and opens the session
2. `open` queues the Welcome frame, registers the connection, starts the
   dispatcher and supervisor, and broadcasts the roster
3. inbound frames are fed to `receive_text` / `receive_bytes` /
   `receive_pong`
4. `close` (client close, write failure, idle timeout or shutdown) stops
   the timers, notifies paired peers, unregisters the connection,
   broadcasts the roster and stops the dispatcher
"""

import asyncio

from signal_relay.constants import WS_GOING_AWAY_CODE
from signal_relay.core.identity import IdentityAllocator
from signal_relay.core.liveness import LivenessSupervisor
from signal_relay.core.outbound import (
    OutboundDispatcher,
    OutboundFrame,
    OutboundQueue,
)
from signal_relay.core.registry import ConnectionRegistry
from signal_relay.core.router import MessageRouter
from signal_relay.core.transport import Transport
from signal_relay.exceptions import QueueClosedError
from signal_relay.logging import connection_id_var, logger
from signal_relay.schemas.messages import Welcome
from signal_relay.types import ConnectionId
from signal_relay.utils.metrics import (
    ws_connections_active,
    ws_connections_total,
)


class SignalingSession:
    """One live signaling connection bound to a transport."""

    def __init__(
        self,
        hub: "SignalingHub",
        connection_id: ConnectionId,
        transport: Transport,
    ) -> None:
        self.hub = hub
        self.connection_id = connection_id
        self.transport = transport
        self.queue = OutboundQueue()
        self.dispatcher = OutboundDispatcher(
            connection_id,
            self.queue,
            transport,
            on_failure=lambda: self.close(reason="write_failure"),
        )
        self.supervisor = LivenessSupervisor(
            connection_id,
            hub.registry,
            self.queue,
            on_timeout=lambda: self.close(reason="idle_timeout"),
            heartbeat_interval=hub.heartbeat_interval,
            idle_timeout=hub.idle_timeout,
            check_interval=hub.idle_check_interval,
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        # Welcome must precede any roster frame queued by other sessions
        self.queue.put_text(Welcome(user_id=self.connection_id).encode())

        await self.hub.registry.register(self.connection_id, self.queue)
        self.dispatcher.start()
        self.supervisor.start()
        await self.hub.registry.broadcast_roster()

        ws_connections_total.labels(reason="accepted").inc()
        ws_connections_active.inc()
        logger.info(f"Connection {self.connection_id} opened")

    async def receive_text(self, text: str) -> bool:
        """
        Handles one inbound text frame.

        Returns:
            True if the frame was delivered to a target connection.
        """
        await self.hub.registry.touch(self.connection_id)
        return await self.hub.router.route(self.connection_id, text)

    async def receive_bytes(self, data: bytes) -> None:
        """Binary frames only count as activity; they are never routed."""
        await self.hub.registry.touch(self.connection_id)
        logger.debug(
            f"Ignoring {len(data)}-byte binary frame from "
            f"{self.connection_id}"
        )

    async def receive_pong(self) -> None:
        await self.hub.registry.touch(self.connection_id)

    async def close(self, reason: str = "client_close") -> None:
        """
        Runs the disconnect cleanup; idempotent.

        Args:
            reason: Why the connection is closing, for logs and metrics.
        """
        if self._closed:
            return
        self._closed = True

        try:
            await self.supervisor.stop()
            await self.hub.registry.evict(self.connection_id)
        finally:
            # The dispatcher and session entry go even if eviction failed
            await self.dispatcher.stop()
            self.hub.sessions.pop(self.connection_id, None)
            ws_connections_total.labels(reason=reason).inc()
            ws_connections_active.dec()
            logger.info(f"Connection {self.connection_id} closed ({reason})")


class SignalingHub:
    """
    Process-wide signaling state.

    Owns the identity allocator, the connection registry, the message router
    and the table of live sessions.
    """

    def __init__(
        self,
        registry: ConnectionRegistry | None = None,
        allocator: IdentityAllocator | None = None,
        heartbeat_interval: float | None = None,
        idle_timeout: float | None = None,
        idle_check_interval: float | None = None,
    ) -> None:
        self.registry = registry or ConnectionRegistry()
        self.allocator = allocator or IdentityAllocator()
        self.router = MessageRouter(self.registry)
        self.heartbeat_interval = heartbeat_interval
        self.idle_timeout = idle_timeout
        self.idle_check_interval = idle_check_interval
        self.sessions: dict[ConnectionId, SignalingSession] = {}

    async def accept(self, transport: Transport) -> SignalingSession:
        """
        Accepts a new stream and opens a session for it.

        Args:
            transport: Write half of the accepted stream.

        Returns:
            The opened session; its `connection_id` is the new identity.
        """
        connection_id = self.allocator.next_id()
        connection_id_var.set(connection_id)

        session = SignalingSession(self, connection_id, transport)
        self.sessions[connection_id] = session
        await session.open()
        return session

    async def shutdown(self) -> None:
        """Closes every live session."""
        sessions = list(self.sessions.values())
        if not sessions:
            return

        logger.info(f"Closing {len(sessions)} signaling session(s)")
        for session in sessions:
            try:
                session.queue.put(OutboundFrame.close(WS_GOING_AWAY_CODE))
            except QueueClosedError:
                logger.debug(
                    f"Connection {session.connection_id} already closing"
                )

        results = await asyncio.gather(
            *[session.close(reason="shutdown") for session in sessions],
            return_exceptions=True,
        )
        for session, result in zip(sessions, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Error closing connection {session.connection_id}: "
                    f"{result}"
                )
