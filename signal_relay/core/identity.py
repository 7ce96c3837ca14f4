import threading
from itertools import count

from signal_relay.constants import FIRST_CONNECTION_ID, MAX_CONNECTION_ID
from signal_relay.exceptions import IdentityExhaustedError
from signal_relay.types import ConnectionId


class IdentityAllocator:
    """
    Issues strictly increasing connection identities.

    Identities start at `start` and are never reused for the lifetime of the
    allocator. Safe to call from several threads.
    """

    def __init__(
        self,
        start: int = FIRST_CONNECTION_ID,
        ceiling: int = MAX_CONNECTION_ID,
    ) -> None:
        self._counter = count(start)
        self._ceiling = ceiling
        self._lock = threading.Lock()

    def next_id(self) -> ConnectionId:
        """
        Allocate the next connection identity.

        Returns:
            A positive identity greater than every identity issued before.

        Raises:
            IdentityExhaustedError: If the ceiling has been passed.
        """
        with self._lock:
            value = next(self._counter)

        if value > self._ceiling:
            raise IdentityExhaustedError(
                f"Connection identity {value} exceeds ceiling {self._ceiling}"
            )
        return ConnectionId(value)
