"""Tests for the health check endpoint."""

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture
def app():
    """
    Create a minimal FastAPI app with only the health endpoint.

    Returns:
        FastAPI: FastAPI application instance.
    """
    from signal_relay.api.http.health import router

    test_app = FastAPI()
    test_app.include_router(router)
    return test_app


@pytest.fixture
def client(app):
    """
    Create a test client for the FastAPI application.

    Args:
        app: FastAPI application fixture.

    Returns:
        TestClient: FastAPI test client instance.
    """
    return TestClient(app)


def test_health_endpoint_before_startup(client):
    """
    Test health endpoint while no signaling hub exists yet.

    Args:
        client: FastAPI test client fixture.
    """
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "starting", "connections": 0}


def test_health_endpoint_reports_connections(app, client):
    """
    Test health endpoint reports the number of live connections.

    Args:
        app: FastAPI application fixture.
        client: FastAPI test client fixture.
    """
    mock_hub = MagicMock()
    mock_hub.registry.__len__.return_value = 3
    app.state.hub = mock_hub

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "connections": 3}


def test_health_endpoint_with_application_lifespan():
    """Test the full application exposes a healthy status after startup."""
    from signal_relay import application

    with TestClient(application()) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "connections": 0}
