"""Replica set settings domain entity."""

from dataclasses import dataclass, field

from replset.domain.exceptions import ReplicaSetConfigError
from replset.domain.membership import SecurityData
from replset.domain.retry import (
    DEFAULT_CONNECT_BUDGET,
    DEFAULT_INIT_BUDGET,
    DEFAULT_PORT,
    DEFAULT_RECONFIG_BUDGET,
    RetryBudget,
)


def _validate_host_key(name: str, value: str) -> None:
    """Validate a "host:port" address."""
    if not value or not value.strip():
        raise ReplicaSetConfigError(f"{name} cannot be empty or whitespace-only")

    if value != value.strip():
        raise ReplicaSetConfigError(
            f"{name} cannot have leading/trailing whitespace, got: {value!r}"
        )

    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ReplicaSetConfigError(f"{name} must be in 'host:port' form, got: {value!r}")


@dataclass(frozen=True)
class ReplicaSetSettings:
    """Settings for joining one node to a replica set.

    Domain entity with zero external dependencies.

    Attributes:
        key: Replica set id used when this node initiates the set.
        name: Replica set name expected when connecting through the seed list.
        security: Administrative credentials.
        seeds: Candidate "host:port" addresses of existing members. May be empty,
               in which case only a local connection is attempted.
        port: Port the local data store listens on.
        local_address: Address used for direct local connections.
        connect_budget: Seed-list connection attempts and wait.
        init_budget: Polling budget after replSetInitiate.
        reconfig_budget: Forced reconfig retries and joined-state polling budget.
    """

    key: str
    name: str
    security: SecurityData
    seeds: tuple[str, ...] = ()
    port: int = DEFAULT_PORT
    local_address: str = "127.0.0.1"
    connect_budget: RetryBudget = field(default=DEFAULT_CONNECT_BUDGET)
    init_budget: RetryBudget = field(default=DEFAULT_INIT_BUDGET)
    reconfig_budget: RetryBudget = field(default=DEFAULT_RECONFIG_BUDGET)

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        object.__setattr__(self, "seeds", tuple(self.seeds))
        self._validate_key()
        self._validate_name()
        self._validate_seeds()
        self._validate_port()
        self._validate_local_address()

    def _validate_key(self) -> None:
        """Validate that key is not empty or whitespace-only."""
        if not self.key or not self.key.strip():
            raise ReplicaSetConfigError("key cannot be empty or whitespace-only")

    def _validate_name(self) -> None:
        """Validate that name is not empty or whitespace-only."""
        if not self.name or not self.name.strip():
            raise ReplicaSetConfigError("name cannot be empty or whitespace-only")

    def _validate_seeds(self) -> None:
        """Validate each seed is a "host:port" address without duplicates."""
        for seed in self.seeds:
            _validate_host_key("seed", seed)

        if len(self.seeds) != len(set(self.seeds)):
            raise ReplicaSetConfigError("seeds contains duplicate addresses")

    def _validate_port(self) -> None:
        """Validate port is a TCP port number."""
        if isinstance(self.port, bool) or not 0 < self.port < 65536:
            raise ReplicaSetConfigError(f"port must be in 1..65535, got: {self.port}")

    def _validate_local_address(self) -> None:
        """Validate local_address is non-empty."""
        if not self.local_address or not self.local_address.strip():
            raise ReplicaSetConfigError("local_address cannot be empty")

    @property
    def local_host_key(self) -> str:
        """Address used for direct local connections."""
        return f"{self.local_address}:{self.port}"
