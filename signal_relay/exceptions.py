"""
Custom exception classes for the signaling core.

Only programming defects and closed-channel conditions are modelled as
exceptions. Malformed frames and stale targets are expected under normal
churn and are dropped without raising.
"""


class RegistryInvariantError(Exception):
    """
    Connection registry invariant violated.

    Raised on a duplicate identity insert or when an asymmetric pairing is
    detected. This is a logic defect and must never be silently tolerated.
    """

    pass


class IdentityExhaustedError(Exception):
    """
    Identity allocator ran out of identities.

    Raised when the allocator would issue an identity above the configured
    ceiling. Treated as fatal.
    """

    pass


class QueueClosedError(Exception):
    """
    Outbound queue is closed.

    Raised when a frame is enqueued for a connection whose dispatcher has
    already stopped.
    """

    pass


class TransportClosedError(Exception):
    """
    Transport write failed.

    Raised by transport adapters when the underlying stream can no longer
    be written to.
    """

    pass
