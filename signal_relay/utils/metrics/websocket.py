"""
Prometheus metrics for signaling connection monitoring.

This module defines metrics for tracking WebSocket connections, inbound
message kinds, routing outcomes and liveness evictions.
"""

from signal_relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

# WebSocket Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of active signaling connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total signaling connections",
    ["reason"],  # accepted, client_close, write_failure, idle_timeout, shutdown
)

ws_frames_sent_total = _get_or_create_counter(
    "ws_frames_sent_total",
    "Total frames written to signaling connections",
    ["kind"],  # text, ping, close
)

# Signaling Message Metrics
signaling_messages_received_total = _get_or_create_counter(
    "signaling_messages_received_total",
    "Total signaling messages received",
    ["type"],
)

signaling_messages_routed_total = _get_or_create_counter(
    "signaling_messages_routed_total",
    "Total signaling messages delivered to a target connection",
    ["type"],
)

signaling_messages_dropped_total = _get_or_create_counter(
    "signaling_messages_dropped_total",
    "Total signaling messages dropped without delivery",
    ["reason"],  # malformed, unknown_target, server_only
)

signaling_idle_evictions_total = _get_or_create_counter(
    "signaling_idle_evictions_total",
    "Total connections evicted by the idle timeout",
)

signaling_routing_duration_seconds = _get_or_create_histogram(
    "signaling_routing_duration_seconds",
    "Time spent decoding and routing one inbound signaling frame",
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
)
