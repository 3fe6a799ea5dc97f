"""Cancellation token for long-running membership operations.

Retry loops run for up to CONNECT_ATTEMPTS * CONNECT_WAIT seconds. A token
lets the caller abort them from another thread or bound them with a deadline;
it is checked at every sleep and poll boundary.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from replset.domain.exceptions import OperationCancelledError


class CancellationToken:
    """Cancellation flag with an optional deadline.

    Example:
        >>> token = CancellationToken(deadline_seconds=600)
        >>> token.cancelled
        False
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(
        self,
        deadline_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the token.

        Args:
            deadline_seconds: Seconds from now after which the token counts as
                cancelled. None means no deadline.
            clock: Monotonic clock, injectable for tests.
        """
        if deadline_seconds is not None and deadline_seconds < 0:
            raise ValueError("deadline_seconds cannot be negative")

        self._clock = clock
        self._event = threading.Event()
        self._deadline = (
            clock() + deadline_seconds if deadline_seconds is not None else None
        )

    def cancel(self) -> None:
        """Request cancellation. Idempotent and safe from any thread."""
        self._event.set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the deadline passed."""
        if self._event.is_set():
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self.cancelled:
            raise OperationCancelledError("operation cancelled")

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds``, returning early on cancellation.

        Args:
            seconds: Maximum time to block.

        Returns:
            True if the token is cancelled when the wait ends.
        """
        remaining = self.remaining()
        timeout = seconds if remaining is None else min(seconds, remaining)
        self._event.wait(max(0.0, timeout))
        return self.cancelled
