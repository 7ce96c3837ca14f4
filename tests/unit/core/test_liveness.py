"""Tests for heartbeat and idle-timeout supervision."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from signal_relay.core.liveness import LivenessSupervisor
from signal_relay.core.outbound import OutboundQueue
from tests.mocks.transport_mocks import wait_until


def queued_kinds(queue):
    """Pops every queued frame and returns their kinds."""
    kinds = []
    while queue.qsize():
        frame = queue._queue.get_nowait()
        kinds.append(frame.kind if frame is not None else None)
    return kinds


@pytest.fixture
def queue():
    return OutboundQueue()


def make_supervisor(registry, queue, on_timeout=None, **intervals):
    intervals.setdefault("heartbeat_interval", 3600)
    intervals.setdefault("idle_timeout", 60)
    intervals.setdefault("check_interval", 3600)
    return LivenessSupervisor(
        1, registry, queue, on_timeout=on_timeout or AsyncMock(), **intervals
    )


@pytest.mark.slow
class TestHeartbeat:
    """Tests for the heartbeat timer."""

    @pytest.mark.asyncio
    async def test_enqueues_pings(self, registry, queue):
        """Test a ping is queued every heartbeat interval."""
        await registry.register(1, queue)
        supervisor = make_supervisor(
            registry, queue, heartbeat_interval=0.01
        )

        supervisor.start()
        await wait_until(lambda: queue.qsize() >= 3)
        await supervisor.stop()

        assert set(queued_kinds(queue)) == {"ping"}

    @pytest.mark.asyncio
    async def test_stops_when_queue_closed(self, registry, queue):
        """Test the heartbeat ends itself once the queue is closed."""
        await registry.register(1, queue)
        supervisor = make_supervisor(
            registry, queue, heartbeat_interval=0.01
        )
        queue.close()

        supervisor.start()
        heartbeat_task = supervisor._tasks[0]
        await wait_until(heartbeat_task.done)

        assert heartbeat_task.exception() is None
        await supervisor.stop()


@pytest.mark.slow
class TestIdleCheck:
    """Tests for the idle-timeout timer."""

    @pytest.mark.asyncio
    async def test_idle_connection_is_closed(self, registry, clock, queue):
        """Test an idle connection gets a close frame and the cleanup."""
        await registry.register(1, queue)
        on_timeout = AsyncMock()
        supervisor = make_supervisor(
            registry,
            queue,
            on_timeout=on_timeout,
            idle_timeout=60,
            check_interval=0.01,
        )

        supervisor.start()
        clock.advance(61)
        await wait_until(lambda: on_timeout.await_count == 1)
        await supervisor.stop()

        assert queued_kinds(queue) == ["close"]

    @pytest.mark.asyncio
    async def test_active_connection_is_kept(self, registry, clock, queue):
        """Test a connection within the timeout is left alone."""
        await registry.register(1, queue)
        on_timeout = AsyncMock()
        supervisor = make_supervisor(
            registry,
            queue,
            on_timeout=on_timeout,
            idle_timeout=60,
            check_interval=0.01,
        )

        supervisor.start()
        clock.advance(45)
        await registry.touch(1)
        clock.advance(45)
        await asyncio.sleep(0.05)
        await supervisor.stop()

        on_timeout.assert_not_awaited()
        assert queued_kinds(queue) == []

    @pytest.mark.asyncio
    async def test_exits_when_connection_gone(self, registry, queue):
        """Test the idle check ends once the record is removed."""
        await registry.register(1, queue)
        on_timeout = AsyncMock()
        supervisor = make_supervisor(
            registry, queue, on_timeout=on_timeout, check_interval=0.01
        )

        supervisor.start()
        await registry.unregister(1)
        idle_task = supervisor._tasks[1]
        await wait_until(idle_task.done)
        await supervisor.stop()

        on_timeout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_with_closed_queue(self, registry, clock, queue):
        """Test the cleanup still runs when the queue is already closed."""
        await registry.register(1, queue)
        on_timeout = AsyncMock()
        supervisor = make_supervisor(
            registry, queue, on_timeout=on_timeout, check_interval=0.01
        )
        queue.close()

        supervisor.start()
        clock.advance(120)
        await wait_until(lambda: on_timeout.await_count == 1)
        await supervisor.stop()


class TestStop:
    """Tests for stopping the supervisor."""

    @pytest.mark.asyncio
    async def test_stop_cancels_timers(self, registry, queue):
        """Test stop cancels both running timers."""
        await registry.register(1, queue)
        supervisor = make_supervisor(registry, queue)
        supervisor.start()
        assert supervisor.running

        await supervisor.stop()

        assert not supervisor.running
        assert all(task.cancelled() for task in supervisor._tasks)

    @pytest.mark.asyncio
    async def test_stop_before_start(self, registry, queue):
        """Test stopping a supervisor that never started."""
        supervisor = make_supervisor(registry, queue)

        await supervisor.stop()

        assert not supervisor.running

    def test_intervals_default_to_settings(self, registry, queue):
        """Test unset intervals come from application settings."""
        from signal_relay.settings import app_settings

        supervisor = LivenessSupervisor(1, registry, queue, AsyncMock())

        assert (
            supervisor.heartbeat_interval
            == app_settings.HEARTBEAT_INTERVAL_SECONDS
        )
        assert supervisor.idle_timeout == app_settings.IDLE_TIMEOUT_SECONDS
        assert (
            supervisor.check_interval
            == app_settings.IDLE_CHECK_INTERVAL_SECONDS
        )
