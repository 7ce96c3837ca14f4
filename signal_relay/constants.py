"""
Application-level constants for hardcoded protocol behavior.

These values are part of the wire protocol or of internal safety limits and
should NEVER be changed via environment variables. Tunable timings live in
signal_relay/settings.py.
"""

# ============================================================================
# WebSocket Protocol Constants
# ============================================================================

# Normal closure (RFC 6455), used for idle-timeout and shutdown closes
WS_NORMAL_CLOSURE_CODE = 1000

# Going away (RFC 6455), used when the server shuts down
WS_GOING_AWAY_CODE = 1001


# ============================================================================
# Identity Allocation
# ============================================================================

# First identity handed out by the allocator
FIRST_CONNECTION_ID = 1

# Highest identity the allocator will issue (signed 64-bit max)
MAX_CONNECTION_ID = 2**63 - 1


# ============================================================================
# Signaling Protocol
# ============================================================================

# Peer states that mutate the pairing relation; any other state is opaque
PEER_STATE_CONNECTED = "connected"
PEER_STATE_DISCONNECTED = "disconnected"

# Display name used for every roster entry
USER_NAME_TEMPLATE = "User {id}"


# ============================================================================
# Logging
# ============================================================================

# Frames longer than this are truncated in debug logs
LOG_FRAME_PREVIEW_CHARS = 200


# ============================================================================
# Outbound Dispatch
# ============================================================================

# Timeout (seconds) a stopping dispatcher gets to drain frames already queued
# (e.g. the close frame written after an idle timeout) before it is cancelled
WS_CLOSE_TIMEOUT_SECONDS = 5
