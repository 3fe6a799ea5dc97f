"""Retry budget domain value object."""

from dataclasses import dataclass

from replset.domain.exceptions import ReplicaSetConfigError

DEFAULT_PORT = 27017

# Seed-list connection attempts before falling back to a local connection.
CONNECT_ATTEMPTS = 60
CONNECT_WAIT = 10.0

# Polling for the initiating member to become primary after replSetInitiate.
INIT_ATTEMPTS = 60
INIT_WAIT = 3.0

# Forced replSetReconfig retries, also used to poll for the joined state.
RECONFIG_ATTEMPTS = 10
RECONFIG_WAIT = 10.0

# Pause between a reconfiguration and the reconnect that follows it.
RECONNECT_DELAY = 1.0


@dataclass(frozen=True)
class RetryBudget:
    """Bounded attempts with a fixed wait between them.

    Attributes:
        attempts: Maximum number of attempts. Must be at least 1.
        wait_seconds: Seconds to wait between two attempts. Must be non-negative.
    """

    attempts: int
    wait_seconds: float

    def __post_init__(self) -> None:
        """Validate retry budget configuration."""
        self._validate_attempts()
        self._validate_wait_seconds()

    def _validate_attempts(self) -> None:
        """Validate attempts is at least 1."""
        if self.attempts < 1:
            raise ReplicaSetConfigError("attempts must be at least 1")

    def _validate_wait_seconds(self) -> None:
        """Validate wait_seconds is non-negative."""
        if self.wait_seconds < 0:
            raise ReplicaSetConfigError("wait_seconds cannot be negative")

    def has_next(self, attempt: int) -> bool:
        """Return True if another attempt may follow ``attempt`` (1-indexed)."""
        return attempt < self.attempts

    @property
    def max_wait_seconds(self) -> float:
        """Total sleep when every attempt fails."""
        return (self.attempts - 1) * self.wait_seconds


DEFAULT_CONNECT_BUDGET = RetryBudget(attempts=CONNECT_ATTEMPTS, wait_seconds=CONNECT_WAIT)
DEFAULT_INIT_BUDGET = RetryBudget(attempts=INIT_ATTEMPTS, wait_seconds=INIT_WAIT)
DEFAULT_RECONFIG_BUDGET = RetryBudget(
    attempts=RECONFIG_ATTEMPTS, wait_seconds=RECONFIG_WAIT
)
