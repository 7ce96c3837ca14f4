import time

from signal_relay.constants import (
    LOG_FRAME_PREVIEW_CHARS,
    PEER_STATE_CONNECTED,
    PEER_STATE_DISCONNECTED,
)
from signal_relay.core.registry import ConnectionRegistry
from signal_relay.logging import logger, set_log_context
from signal_relay.schemas.messages import (
    SERVER_ONLY_MESSAGES,
    PeerStateChange,
    decode_message,
    routing_target,
)
from signal_relay.types import ConnectionId, DropReason
from signal_relay.utils.metrics import (
    signaling_messages_dropped_total,
    signaling_messages_received_total,
    signaling_messages_routed_total,
    signaling_routing_duration_seconds,
)


class MessageRouter:
    """
    Routes inbound signaling frames between paired peers.

    The router never inspects offers, answers or candidates: the raw frame is
    forwarded verbatim to the single connection it names. Frames that cannot
    be decoded, that only the server may send, or whose target is gone are
    dropped without telling the sender.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    async def route(self, sender_id: ConnectionId, text: str) -> bool:
        """
        Decodes one inbound text frame and delivers it to its target.

        Routing rules:
        - PeerStateChange goes to `to_id`; `connected` pairs and
          `disconnected` unpairs `from_id` and `to_id`
        - ConnectionRequest, RTCOffer, RTCAnswer, RTCCandidate go to `to_id`
        - ConnectionResponse goes to `from_id`
        - Welcome and UserList are server-only and dropped

        Args:
            sender_id: Connection the frame arrived on.
            text: Raw frame payload.

        Returns:
            True if the frame was queued for a target connection.
        """
        start_time = time.perf_counter()
        try:
            return await self._route(sender_id, text)
        finally:
            signaling_routing_duration_seconds.observe(
                time.perf_counter() - start_time
            )

    async def _route(self, sender_id: ConnectionId, text: str) -> bool:
        message = decode_message(text)
        if message is None:
            self._drop("malformed", sender_id, text)
            return False

        set_log_context(
            message_type=message.type, target=routing_target(message)
        )
        signaling_messages_received_total.labels(type=message.type).inc()

        if isinstance(message, SERVER_ONLY_MESSAGES):
            self._drop("server_only", sender_id, text)
            return False

        target_id = ConnectionId(routing_target(message))
        delivered = await self.registry.deliver(target_id, text)

        if delivered:
            signaling_messages_routed_total.labels(type=message.type).inc()
            logger.debug(
                f"Routed {message.type} from {sender_id} to {target_id}"
            )
        else:
            self._drop("unknown_target", sender_id, text)

        if isinstance(message, PeerStateChange):
            await self._apply_peer_state(message)

        return delivered

    async def _apply_peer_state(self, message: PeerStateChange) -> None:
        from_id = ConnectionId(message.from_id)
        to_id = ConnectionId(message.to_id)

        if message.state == PEER_STATE_CONNECTED:
            await self.registry.pair(from_id, to_id)
        elif message.state == PEER_STATE_DISCONNECTED:
            await self.registry.unpair(from_id, to_id)

    @staticmethod
    def _drop(reason: DropReason, sender_id: ConnectionId, text: str) -> None:
        signaling_messages_dropped_total.labels(reason=reason).inc()
        logger.debug(
            f"Dropped frame from {sender_id} ({reason}): "
            f"{text[:LOG_FRAME_PREVIEW_CHARS]}"
        )
