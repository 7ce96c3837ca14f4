"""
Prometheus metrics for the signaling relay.

Metrics are defined in per-concern modules and re-exported here so callers
can import them from `signal_relay.utils.metrics`.
"""

from signal_relay.utils.metrics._helpers import _get_or_create_gauge
from signal_relay.utils.metrics.websocket import (
    signaling_idle_evictions_total,
    signaling_messages_dropped_total,
    signaling_messages_received_total,
    signaling_messages_routed_total,
    signaling_routing_duration_seconds,
    ws_connections_active,
    ws_connections_total,
    ws_frames_sent_total,
)

# Application Metrics
app_info = _get_or_create_gauge(
    "app_info",
    "Application information",
    ["version", "python_version", "environment"],
)

__all__ = [
    "app_info",
    "signaling_idle_evictions_total",
    "signaling_messages_dropped_total",
    "signaling_messages_received_total",
    "signaling_messages_routed_total",
    "signaling_routing_duration_seconds",
    "ws_connections_active",
    "ws_connections_total",
    "ws_frames_sent_total",
]
