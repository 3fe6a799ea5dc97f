"""Port interfaces for the replset core package.

Ports define the contracts that adapters must implement.
These are Protocol classes (structural subtyping) for flexible testing.
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from replset.domain.exceptions import OperationCancelledError
from replset.domain.retry import CONNECT_WAIT, DEFAULT_PORT

if TYPE_CHECKING:
    from replset.domain.cancellation import CancellationToken


class ConnectMode(Enum):
    """How a connection discovers its servers.

    Attributes:
        DIRECT: Talk to exactly the given address, even if it is a replica set member.
        GROUP_AWARE: Discover the replica set topology from the seed addresses.
    """

    DIRECT = "direct"
    GROUP_AWARE = "group_aware"


@dataclass(frozen=True)
class ConnectOptions:
    """Options for opening a data store connection.

    Immutable value object passed to DataStoreConnectorPort.connect().

    Attributes:
        database: Database used for authentication and admin commands.
        user: User name, None to connect without credentials.
        password: Password, None to connect without credentials.
        connect_timeout_seconds: Socket connect and server selection timeout.
        connect_mode: DIRECT or GROUP_AWARE.
        read_preference: Read preference mode name (e.g., "primaryPreferred").
        group_id: Replica set name required by GROUP_AWARE connections.
    """

    database: str = "admin"
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    connect_timeout_seconds: float = CONNECT_WAIT
    connect_mode: ConnectMode = ConnectMode.DIRECT
    read_preference: str | None = None
    group_id: str | None = None

    @property
    def has_credentials(self) -> bool:
        """True if both user and password are set."""
        return self.user is not None and self.password is not None


@runtime_checkable
class DataStoreClientPort(Protocol):
    """Port interface for a live data store connection.

    Implementations wrap the underlying wire client, which is treated as an
    opaque RPC handle. Disconnecting invalidates the handle.

    Contract:
        - run_admin_command() returns the first reply document
        - run_admin_command() raises CommandError when the server rejects the
          command and ConnectivityError when the server cannot be reached
        - run_command() behaves the same against any named database
        - find_one() returns None when no document matches
        - driver exceptions never escape the adapter
    """

    def run_admin_command(self, name: str, value: Any = 1, **arguments: Any) -> dict[str, Any]:
        """Run an administrative command against the admin database.

        Args:
            name: Command name, e.g. "replSetGetStatus".
            value: Command value, e.g. 1 or a configuration document.
            **arguments: Additional command fields, e.g. force=True.

        Returns:
            The reply document.

        Raises:
            CommandError: If the server rejected the command.
            ConnectivityError: If the server could not be reached.
        """
        ...

    def run_command(
        self, database: str, name: str, value: Any = 1, **arguments: Any
    ) -> dict[str, Any]:
        """Run a command against ``database``, e.g. createUser for a user database.

        Raises:
            CommandError: If the server rejected the command.
            ConnectivityError: If the server could not be reached.
        """
        ...

    def find_one(
        self,
        database: str,
        collection: str,
        filter: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Return the first matching document of a collection, or None.

        Raises:
            CommandError: If the query was rejected.
            ConnectivityError: If the server could not be reached.
        """
        ...

    def has_admin_privileges(self) -> bool:
        """Return True if a privileged metadata read succeeds."""
        ...

    def is_group_connection(self) -> bool:
        """Return True if the connection discovered a replica set topology."""
        ...

    def is_authenticated(self) -> bool:
        """Return True if the connection was opened with credentials."""
        ...

    def close(self) -> None:
        """Close the connection. Idempotent."""
        ...


@runtime_checkable
class DataStoreConnectorPort(Protocol):
    """Port interface for opening data store connections.

    Contract:
        - connect() returns a usable client or raises
        - raises UnauthorizedError when the credentials are rejected
        - raises ConnectivityError when no address is reachable
    """

    def connect(
        self,
        addresses: tuple[str, ...],
        options: ConnectOptions,
    ) -> DataStoreClientPort:
        """Open a connection to ``addresses``.

        Args:
            addresses: "host:port" addresses to connect to.
            options: Connection options.

        Returns:
            A connected DataStoreClientPort.

        Raises:
            UnauthorizedError: If the credentials were rejected.
            ConnectivityError: If no address could be reached.
        """
        ...


@runtime_checkable
class HostKeyResolverPort(Protocol):
    """Port interface for resolving this node's "ip:port" host key.

    Contract:
        - resolve_host_key() returns a non-empty "host:port" string
        - The returned string should be consistent across multiple calls
    """

    def resolve_host_key(self) -> str:
        """Resolve this node's host key as other members see it."""
        ...


@runtime_checkable
class SleeperPort(Protocol):
    """Port interface for blocking waits between retries and polls.

    Contract:
        - sleep(seconds) blocks for up to ``seconds``
        - sleep() and checkpoint() raise OperationCancelledError once the
          caller requested cancellation
    """

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds``.

        Raises:
            OperationCancelledError: If cancelled before or during the wait.
        """
        ...

    def checkpoint(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        ...


class SocketHostKeyResolver:
    """Default implementation: resolve the host key from the machine hostname.

    Resolves the address of the local hostname and appends the data store
    port, which is how other members address this node.
    """

    def __init__(self, port: int = DEFAULT_PORT) -> None:
        self._port = port

    def resolve_host_key(self) -> str:
        """Resolve "ip:port" from the local hostname.

        Raises:
            OSError: If the hostname cannot be resolved.
        """
        address = socket.gethostbyname(socket.gethostname())
        return f"{address}:{self._port}"


class EnvironmentHostKeyResolver:
    """Resolve the host key from the REPLSET_HOST_KEY environment variable.

    Useful in containers where the hostname does not resolve to the address
    other members use.
    """

    def resolve_host_key(self) -> str:
        """Resolve host key from REPLSET_HOST_KEY.

        Returns:
            The value of REPLSET_HOST_KEY after stripping whitespace.

        Raises:
            KeyError: If REPLSET_HOST_KEY is not set.
            ValueError: If REPLSET_HOST_KEY is empty or whitespace-only.
        """
        host_key = os.environ["REPLSET_HOST_KEY"].strip()

        if not host_key:
            raise ValueError("host key cannot be empty or whitespace-only")

        return host_key


class CancellableSleeper:
    """Default implementation: real sleeping that honors a CancellationToken."""

    def __init__(self, cancellation: CancellationToken) -> None:
        self._cancellation = cancellation

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds`` unless cancelled first."""
        self._cancellation.raise_if_cancelled()
        if self._cancellation.wait(seconds):
            raise OperationCancelledError(
                f"operation cancelled while sleeping {seconds}s"
            )

    def checkpoint(self) -> None:
        """Raise if the token was cancelled."""
        self._cancellation.raise_if_cancelled()
