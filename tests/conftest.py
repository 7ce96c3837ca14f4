"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the signaling core (registry,
hub, fake transports) and for the FastAPI application.
"""

import os
import tempfile

import pytest
import pytest_asyncio

# Set environment for testing before importing application modules
os.environ.setdefault(
    "LOG_FILE_PATH",
    os.path.join(tempfile.gettempdir(), "signal-relay-test-errors.log"),
)
os.environ.setdefault("ENVIRONMENT", "test")


@pytest.fixture
def clock():
    """
    Provides a controllable monotonic clock.

    Returns:
        FakeClock: Clock starting at an arbitrary fixed time.
    """
    from tests.mocks.transport_mocks import FakeClock

    return FakeClock()


@pytest.fixture
def registry(clock):
    """
    Provides an empty ConnectionRegistry driven by the fake clock.

    Args:
        clock: Fixture providing the fake clock.

    Returns:
        ConnectionRegistry: Fresh registry instance.
    """
    from signal_relay.core.registry import ConnectionRegistry

    return ConnectionRegistry(clock=clock)


@pytest.fixture
def transport():
    """
    Provides an in-memory transport recording written frames.

    Returns:
        RecordingTransport: Fresh transport instance.
    """
    from tests.mocks.transport_mocks import RecordingTransport

    return RecordingTransport()


@pytest_asyncio.fixture
async def hub(registry):
    """
    Provides a SignalingHub with long liveness intervals.

    Timers never fire during a test using this fixture; every session still
    open at teardown is closed.

    Args:
        registry: Fixture providing the registry.

    Yields:
        SignalingHub: Hub instance.
    """
    from signal_relay.core.hub import SignalingHub

    signaling_hub = SignalingHub(
        registry=registry,
        heartbeat_interval=3600,
        idle_timeout=3600,
        idle_check_interval=3600,
    )
    yield signaling_hub
    await signaling_hub.shutdown()

