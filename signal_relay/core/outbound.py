import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from signal_relay.constants import (
    WS_CLOSE_TIMEOUT_SECONDS,
    WS_NORMAL_CLOSURE_CODE,
)
from signal_relay.core.transport import Transport
from signal_relay.exceptions import QueueClosedError, TransportClosedError
from signal_relay.logging import logger
from signal_relay.types import ConnectionId, FrameKind
from signal_relay.utils.metrics import ws_frames_sent_total

FailureCallback = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class OutboundFrame:
    """A single frame waiting in a connection's outbound queue."""

    kind: FrameKind
    text: str | None = None
    code: int = WS_NORMAL_CLOSURE_CODE

    @classmethod
    def text_frame(cls, text: str) -> "OutboundFrame":
        return cls(kind="text", text=text)

    @classmethod
    def ping(cls) -> "OutboundFrame":
        return cls(kind="ping")

    @classmethod
    def close(cls, code: int = WS_NORMAL_CLOSURE_CODE) -> "OutboundFrame":
        return cls(kind="close", code=code)


class OutboundQueue:
    """
    Unbounded, ordered, single-consumer channel of outbound frames.

    Producers (router, liveness supervisor, roster broadcast) call `put`;
    the connection's OutboundDispatcher is the only consumer. Once closed,
    `put` raises QueueClosedError and the consumer sees end-of-stream after
    the frames already queued.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[OutboundFrame | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, frame: OutboundFrame) -> None:
        """
        Enqueue a frame for delivery.

        Args:
            frame: Frame to append to the queue.

        Raises:
            QueueClosedError: If the queue has been closed.
        """
        if self._closed:
            raise QueueClosedError("Outbound queue is closed")
        self._queue.put_nowait(frame)

    def put_text(self, text: str) -> None:
        self.put(OutboundFrame.text_frame(text))

    async def get(self) -> OutboundFrame | None:
        """Wait for the next frame; None means the queue is closed and drained."""
        return await self._queue.get()

    def close(self) -> None:
        """Refuse further frames; frames already queued are still delivered."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    def qsize(self) -> int:
        return self._queue.qsize()


class OutboundDispatcher:
    """
    Serialized writer for one connection.

    Drains the connection's OutboundQueue strictly in enqueue order and
    writes each frame to the transport. A failed write stops the dispatcher
    and invokes `on_failure`, which runs the same cleanup as a client close.
    """

    def __init__(
        self,
        connection_id: ConnectionId,
        queue: OutboundQueue,
        transport: Transport,
        on_failure: FailureCallback | None = None,
        drain_timeout: float = WS_CLOSE_TIMEOUT_SECONDS,
    ) -> None:
        self.connection_id = connection_id
        self.queue = queue
        self.transport = transport
        self._on_failure = on_failure
        self._drain_timeout = drain_timeout
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"dispatcher-{self.connection_id}"
        )

    async def stop(self) -> None:
        """
        Close the queue and wait for the dispatcher to drain it.

        Frames queued before the call are still written (bounded by the drain
        timeout); the task is cancelled if it does not finish in time. Safe
        to call from inside the dispatcher task itself.
        """
        self.queue.close()

        task = self._task
        if task is None or task.done() or task is asyncio.current_task():
            return

        try:
            await asyncio.wait_for(asyncio.shield(task), self._drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Dispatcher for connection {self.connection_id} did not "
                f"drain within {self._drain_timeout}s, cancelling"
            )
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _write(self, frame: OutboundFrame) -> None:
        if frame.kind == "text":
            await self.transport.send_text(frame.text or "")
        elif frame.kind == "ping":
            await self.transport.send_ping()
        else:
            await self.transport.close(frame.code)
        ws_frames_sent_total.labels(kind=frame.kind).inc()

    async def _run(self) -> None:
        while True:
            frame = await self.queue.get()
            if frame is None:
                break

            try:
                await self._write(frame)
            except (TransportClosedError, OSError, RuntimeError) as ex:
                # Write failures mean the peer is gone
                logger.debug(
                    f"Write to connection {self.connection_id} failed: {ex}"
                )
                stopping = self.queue.closed
                self.queue.close()
                if self._on_failure is not None and not stopping:
                    try:
                        await self._on_failure()
                    except Exception as cleanup_ex:
                        logger.error(
                            f"Cleanup for connection {self.connection_id} "
                            f"failed: {cleanup_ex}"
                        )
                break

            if frame.kind == "close":
                self.queue.close()
                break

        logger.debug(f"Dispatcher for connection {self.connection_id} stopped")
