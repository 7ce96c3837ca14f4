import asyncio
from typing import Awaitable, Callable

from signal_relay.core.outbound import OutboundFrame, OutboundQueue
from signal_relay.core.registry import ConnectionRegistry
from signal_relay.exceptions import QueueClosedError
from signal_relay.logging import logger
from signal_relay.settings import app_settings
from signal_relay.types import ConnectionId
from signal_relay.utils.metrics import signaling_idle_evictions_total


class LivenessSupervisor:
    """
    Heartbeat and idle-timeout timers for one connection.

    Two periodic tasks are scoped to the connection's lifetime:
    - heartbeat: enqueues a ping frame every `heartbeat_interval` seconds and
      stops itself once the outbound queue is closed
    - idle check: every `check_interval` seconds compares the registry's
      `last_activity` against `idle_timeout`; on expiry it enqueues a close
      frame and runs `on_timeout`, which performs the full disconnect cleanup

    Both tasks are cancelled by `stop`, which the session calls at the start
    of its cleanup path.

    Behind an ASGI server the idle check is a backstop: uvicorn drops clients
    that miss protocol pongs before `idle_timeout` can expire.
    """

    def __init__(
        self,
        connection_id: ConnectionId,
        registry: ConnectionRegistry,
        queue: OutboundQueue,
        on_timeout: Callable[[], Awaitable[None]],
        heartbeat_interval: float | None = None,
        idle_timeout: float | None = None,
        check_interval: float | None = None,
    ) -> None:
        self.connection_id = connection_id
        self.registry = registry
        self.queue = queue
        self._on_timeout = on_timeout
        self.heartbeat_interval = (
            heartbeat_interval or app_settings.HEARTBEAT_INTERVAL_SECONDS
        )
        self.idle_timeout = idle_timeout or app_settings.IDLE_TIMEOUT_SECONDS
        self.check_interval = (
            check_interval or app_settings.IDLE_CHECK_INTERVAL_SECONDS
        )
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self._heartbeat_loop(), name=f"heartbeat-{self.connection_id}"
            ),
            asyncio.create_task(
                self._idle_loop(), name=f"idle-check-{self.connection_id}"
            ),
        ]

    async def stop(self) -> None:
        """
        Cancels both timers and waits for them to finish.

        The calling task is skipped so the idle check can stop its sibling
        while running the timeout cleanup.
        """
        current = asyncio.current_task()
        pending = [
            task
            for task in self._tasks
            if task is not current and not task.done()
        ]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                self.queue.put(OutboundFrame.ping())
            except QueueClosedError:
                logger.debug(
                    f"Heartbeat for connection {self.connection_id} stopped: "
                    "queue closed"
                )
                return

    async def _idle_loop(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval)

            last_activity = await self.registry.last_activity(
                self.connection_id
            )
            if last_activity is None:
                return

            idle_for = self.registry.clock() - last_activity
            if idle_for <= self.idle_timeout:
                continue

            logger.info(
                f"Connection {self.connection_id} idle for {idle_for:.1f}s, "
                "closing"
            )
            signaling_idle_evictions_total.inc()
            try:
                self.queue.put(OutboundFrame.close())
            except QueueClosedError:
                logger.debug(
                    f"Close frame for connection {self.connection_id} "
                    "skipped: queue already closed"
                )
            try:
                await self._on_timeout()
            except Exception as ex:
                logger.error(
                    f"Idle cleanup for connection {self.connection_id} "
                    f"failed: {ex}"
                )
            return
