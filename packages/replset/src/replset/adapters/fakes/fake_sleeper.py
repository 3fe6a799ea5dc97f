"""Fake sleeper and host key resolver for testing."""

from __future__ import annotations

from replset.domain.exceptions import OperationCancelledError


class FakeSleeper:
    """Fake implementation of SleeperPort that records instead of blocking.

    Example:
        >>> sleeper = FakeSleeper()
        >>> sleeper.sleep(10)
        >>> sleeper.sleeps
        [10]
        >>> sleeper.cancel_after(0)
        >>> sleeper.checkpoint()
        Traceback (most recent call last):
        ...
        replset.domain.exceptions.OperationCancelledError: operation cancelled
    """

    def __init__(self) -> None:
        self._sleeps: list[float] = []
        self._cancel_after: int | None = None
        self.checkpoints = 0

    @property
    def sleeps(self) -> list[float]:
        """Return a copy of requested sleep durations, in order."""
        return list(self._sleeps)

    @property
    def total_seconds(self) -> float:
        """Sum of all requested sleeps."""
        return sum(self._sleeps)

    @property
    def cancelled(self) -> bool:
        """True once the configured number of sleeps has happened."""
        return self._cancel_after is not None and len(self._sleeps) >= self._cancel_after

    def cancel_after(self, sleeps: int) -> None:
        """Behave as cancelled once ``sleeps`` sleeps were recorded."""
        self._cancel_after = sleeps

    def sleep(self, seconds: float) -> None:
        """Record the sleep, raising if cancelled."""
        self.checkpoint()
        self._sleeps.append(seconds)

    def checkpoint(self) -> None:
        """Raise OperationCancelledError when cancelled."""
        self.checkpoints += 1
        if self.cancelled:
            raise OperationCancelledError("operation cancelled")


class FakeHostKeyResolver:
    """Fake implementation of HostKeyResolverPort returning a fixed key."""

    def __init__(self, host_key: str = "10.0.0.1:27017") -> None:
        self.host_key = host_key
        self.calls = 0

    def resolve_host_key(self) -> str:
        """Return the configured host key."""
        self.calls += 1
        return self.host_key
