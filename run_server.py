"""
Entry point for running the signaling relay with uvicorn.

Serves plain HTTP on HOST:PORT, or HTTPS on HOST:TLS_PORT when TLS_ENABLED
is set (CERT_PATH and KEY_PATH are then required).
"""

import copy

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from signal_relay.settings import app_settings


def build_log_config() -> dict:
    """Uvicorn logging config with monitoring paths filtered from access logs."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config.setdefault("filters", {})["exclude_metrics"] = {
        "()": "signal_relay.uvicorn_filters.ExcludeMetricsFilter"
    }
    log_config["handlers"]["access"]["filters"] = ["exclude_metrics"]
    return log_config


def build_server_options() -> dict:
    """
    Uvicorn options derived from settings.

    Protocol-level WebSocket pings use the heartbeat interval, and a client
    that does not answer within the idle timeout is dropped by uvicorn.

    Raises:
        ValueError: If TLS is enabled without certificate and key paths.
    """
    options = {
        "host": app_settings.HOST,
        "port": app_settings.PORT,
        "ws_ping_interval": app_settings.HEARTBEAT_INTERVAL_SECONDS,
        "ws_ping_timeout": app_settings.IDLE_TIMEOUT_SECONDS,
        "log_config": build_log_config(),
    }

    if app_settings.TLS_ENABLED:
        if not app_settings.CERT_PATH or not app_settings.KEY_PATH:
            raise ValueError("TLS enabled but CERT_PATH or KEY_PATH is missing")
        options.update(
            port=app_settings.TLS_PORT,
            ssl_certfile=app_settings.CERT_PATH,
            ssl_keyfile=app_settings.KEY_PATH,
        )

    return options


if __name__ == "__main__":
    uvicorn.run("signal_relay:app", **build_server_options())
