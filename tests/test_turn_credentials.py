"""Tests for the ICE server configuration endpoint."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from signal_relay.api.http.turn_credentials import router
from signal_relay.settings import app_settings


@pytest.fixture
def client():
    """
    Create a test client with only the TURN credentials endpoint.

    Returns:
        TestClient: FastAPI test client instance.
    """
    test_app = FastAPI()
    test_app.include_router(router)
    return TestClient(test_app)


def test_returns_stun_and_turn_servers(client):
    """Test STUN entries come first, followed by one TURN entry."""
    with (
        patch.object(app_settings, "STUN_URLS", ["stun:stun.example:3478"]),
        patch.object(
            app_settings,
            "TURN_URLS",
            ["turn:turn.example:80", "turn:turn.example:443"],
        ),
        patch.object(app_settings, "TURN_USERNAME", "relay"),
        patch.object(app_settings, "TURN_CREDENTIAL", "secret"),
    ):
        response = client.get("/api/turn-credentials")

    assert response.status_code == 200
    assert response.json() == {
        "iceServers": [
            {"urls": "stun:stun.example:3478"},
            {
                "urls": ["turn:turn.example:80", "turn:turn.example:443"],
                "username": "relay",
                "credential": "secret",
            },
        ]
    }


def test_turn_entry_omitted_without_urls(client):
    """Test only STUN servers are returned when TURN is not configured."""
    with (
        patch.object(
            app_settings,
            "STUN_URLS",
            ["stun:a.example:3478", "stun:b.example:3478"],
        ),
        patch.object(app_settings, "TURN_URLS", []),
    ):
        response = client.get("/api/turn-credentials")

    assert response.json() == {
        "iceServers": [
            {"urls": "stun:a.example:3478"},
            {"urls": "stun:b.example:3478"},
        ]
    }


def test_default_configuration_has_stun(client):
    """Test the default settings advertise at least one STUN server."""
    response = client.get("/api/turn-credentials")

    servers = response.json()["iceServers"]
    assert servers
    assert servers[0]["urls"].startswith("stun:")
