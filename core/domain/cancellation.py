"""
Cooperative cancellation for long running domain operations.

A token is shared between the caller (usually an async handler) and the
worker thread running the operation. The worker checks the token right
before committing so an abandoned request never leaves side effects.
"""
import threading
import time
from typing import Optional

from core.domain.exceptions import AllocationCancelledError


class CancellationToken:
    """Cancellation flag with an optional monotonic deadline."""

    def __init__(self, deadline: Optional[float] = None):
        """
        Initialize token.

        Args:
            deadline: ``time.monotonic()`` value after which the token
                counts as cancelled, or None for no deadline
        """
        self._event = threading.Event()
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, timeout_seconds: Optional[float]) -> "CancellationToken":
        """Create a token that expires ``timeout_seconds`` from now."""
        if timeout_seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + timeout_seconds)

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        """True once cancelled or past the deadline."""
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        """
        Raise if the operation should stop.

        Raises:
            AllocationCancelledError: If cancelled or the deadline passed
        """
        if self._event.is_set():
            raise AllocationCancelledError("Allocation cancelled before commit")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise AllocationCancelledError("Allocation timed out before commit")
