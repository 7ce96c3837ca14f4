import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable

from signal_relay.constants import PEER_STATE_DISCONNECTED
from signal_relay.core.outbound import OutboundQueue
from signal_relay.exceptions import QueueClosedError, RegistryInvariantError
from signal_relay.logging import logger
from signal_relay.schemas.messages import PeerStateChange, User, UserList
from signal_relay.types import ConnectionId


@dataclass
class ConnectionRecord:
    """
    Registry entry for one live signaling connection.

    Attributes:
        id: Identity issued by the IdentityAllocator, never reused.
        outbound_queue: The only channel through which the connection is written.
        last_activity: Monotonic timestamp of the last inbound frame or pong.
        paired_with: Peers this connection is currently negotiating with.
    """

    id: ConnectionId
    outbound_queue: OutboundQueue
    last_activity: float
    paired_with: set[ConnectionId] = field(default_factory=set)


class ConnectionRegistry:
    """
    Process-wide directory of live connections.

    Single source of truth for liveness, pairing and outbound channels. Every
    operation runs under one asyncio lock, so multi-record updates (pairing,
    eviction, roster broadcast) are never observed half-applied.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initializes an empty registry.

        Args:
            clock: Monotonic time source used for `last_activity`.
        """
        self.clock = clock
        self._records: dict[ConnectionId, ConnectionRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._records

    async def register(
        self, connection_id: ConnectionId, queue: OutboundQueue
    ) -> ConnectionRecord:
        """
        Inserts a new record with an empty pairing set.

        Pairings recorded against the identity before it was registered
        (a `connected` notice naming a connection that did not exist yet)
        are dropped, so the relation stays symmetric.

        Args:
            connection_id: Freshly allocated identity.
            queue: Outbound queue of the new connection.

        Returns:
            The inserted record.

        Raises:
            RegistryInvariantError: If the identity is already registered.
        """
        async with self._lock:
            if connection_id in self._records:
                raise RegistryInvariantError(
                    f"Connection {connection_id} is already registered"
                )

            for existing in self._records.values():
                if connection_id in existing.paired_with:
                    existing.paired_with.discard(connection_id)
                    logger.debug(
                        f"Dropped stale pairing of {existing.id} with "
                        f"{connection_id}"
                    )

            record = ConnectionRecord(
                id=connection_id,
                outbound_queue=queue,
                last_activity=self.clock(),
            )
            self._records[connection_id] = record

        logger.debug(f"Connection {connection_id} registered")
        return record

    async def touch(self, connection_id: ConnectionId) -> None:
        """Marks inbound activity; no-op if the connection is already gone."""
        async with self._lock:
            if record := self._records.get(connection_id):
                record.last_activity = self.clock()

    async def unregister(
        self, connection_id: ConnectionId
    ) -> ConnectionRecord | None:
        """
        Removes a connection and drops it from its peers' pairing sets.

        Idempotent: a second call for the same identity returns None.

        Raises:
            RegistryInvariantError: If a live peer does not list the
                connection back (asymmetric pairing).
        """
        async with self._lock:
            return self._remove_locked(connection_id)

    async def lookup(self, connection_id: ConnectionId) -> OutboundQueue | None:
        async with self._lock:
            record = self._records.get(connection_id)
            return record.outbound_queue if record else None

    async def last_activity(self, connection_id: ConnectionId) -> float | None:
        async with self._lock:
            record = self._records.get(connection_id)
            return record.last_activity if record else None

    async def paired_with(
        self, connection_id: ConnectionId
    ) -> frozenset[ConnectionId]:
        async with self._lock:
            record = self._records.get(connection_id)
            return frozenset(record.paired_with) if record else frozenset()

    async def snapshot_roster(self) -> list[ConnectionId]:
        """Returns live identities in registration order."""
        async with self._lock:
            return list(self._records)

    async def pair(self, a: ConnectionId, b: ConnectionId) -> None:
        """
        Records that `a` and `b` are connected, on both sides at once.

        If one side is absent only the existing side is updated.
        """
        if a == b:
            logger.debug(f"Ignoring self-pairing of connection {a}")
            return

        async with self._lock:
            if record_a := self._records.get(a):
                record_a.paired_with.add(b)
            if record_b := self._records.get(b):
                record_b.paired_with.add(a)

        logger.debug(f"Paired connections {a} and {b}")

    async def unpair(self, a: ConnectionId, b: ConnectionId) -> None:
        """Removes the pairing between `a` and `b` on whichever sides exist."""
        async with self._lock:
            if record_a := self._records.get(a):
                record_a.paired_with.discard(b)
            if record_b := self._records.get(b):
                record_b.paired_with.discard(a)

        logger.debug(f"Unpaired connections {a} and {b}")

    async def deliver(self, connection_id: ConnectionId, text: str) -> bool:
        """
        Enqueues a text frame for one connection.

        Returns:
            True if the frame was queued, False if the connection is absent
            or its queue is already closed.
        """
        async with self._lock:
            record = self._records.get(connection_id)
            if record is None:
                return False
            return self._put_locked(record, text)

    async def broadcast_roster(self) -> int:
        """
        Enqueues the current UserList to every live connection.

        Returns:
            Number of connections the roster was queued for.
        """
        async with self._lock:
            return self._broadcast_roster_locked()

    async def evict(self, connection_id: ConnectionId) -> ConnectionRecord | None:
        """
        Runs the disconnect cleanup for a connection as one atomic step.

        Every paired peer receives a `disconnected` PeerStateChange, the
        record is removed, and the refreshed roster is broadcast to the
        remaining connections.

        Returns:
            The removed record, or None if the connection was already gone.
        """
        async with self._lock:
            record = self._records.get(connection_id)
            if record is None:
                return None

            self._check_symmetry_locked(record)

            for peer_id in sorted(record.paired_with):
                peer = self._records.get(peer_id)
                if peer is None:
                    continue
                notice = PeerStateChange(
                    from_id=connection_id,
                    to_id=peer_id,
                    state=PEER_STATE_DISCONNECTED,
                )
                self._put_locked(peer, notice.encode())

            self._remove_locked(connection_id)
            self._broadcast_roster_locked()

        logger.debug(
            f"Connection {connection_id} evicted, notified "
            f"{len(record.paired_with)} peer(s)"
        )
        return record

    def _put_locked(self, record: ConnectionRecord, text: str) -> bool:
        try:
            record.outbound_queue.put_text(text)
        except QueueClosedError:
            logger.debug(
                f"Dropping frame for connection {record.id}: queue closed"
            )
            return False
        return True

    def _check_symmetry_locked(self, record: ConnectionRecord) -> None:
        for peer_id in record.paired_with:
            peer = self._records.get(peer_id)
            if peer is not None and record.id not in peer.paired_with:
                raise RegistryInvariantError(
                    f"Asymmetric pairing: {record.id} lists {peer_id} "
                    f"but {peer_id} does not list {record.id}"
                )

    def _remove_locked(
        self, connection_id: ConnectionId
    ) -> ConnectionRecord | None:
        record = self._records.get(connection_id)
        if record is None:
            return None

        self._check_symmetry_locked(record)

        for peer_id in record.paired_with:
            if peer := self._records.get(peer_id):
                peer.paired_with.discard(connection_id)

        del self._records[connection_id]
        logger.debug(f"Connection {connection_id} unregistered")
        return record

    def _broadcast_roster_locked(self) -> int:
        roster = UserList(
            users=[User.for_connection(cid) for cid in self._records]
        )
        text = roster.encode()
        return sum(
            self._put_locked(record, text) for record in self._records.values()
        )
