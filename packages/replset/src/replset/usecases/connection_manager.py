"""ConnectionManager use case: obtain a usable handle to the replica set."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from replset.adapters.ports import (
    ConnectMode,
    ConnectOptions,
    DataStoreClientPort,
    DataStoreConnectorPort,
    SleeperPort,
)
from replset.domain.exceptions import ConnectivityError, ReplicaSetError, UnauthorizedError
from replset.domain.settings import ReplicaSetSettings

if TYPE_CHECKING:
    from replset.adapters.metrics_port import MetricsPort

logger = logging.getLogger(__name__)

READ_PREFERENCE = "primaryPreferred"


class ConnectionMode(Enum):
    """How the current handle was obtained.

    Attributes:
        GROUP_AWARE: Through the seed list, with replica set discovery.
        LOCAL_AUTHENTICATED: Direct local connection with admin credentials.
        LOCAL_BYPASS: Direct local connection without credentials, used before
            the replica set has been initiated and users exist.
    """

    GROUP_AWARE = "group_aware"
    LOCAL_AUTHENTICATED = "local_authenticated"
    LOCAL_BYPASS = "local_bypass"


class ConnectionManager:
    """Owns the single live connection of a controller.

    Connection fallback order:
        1. Group-aware connect through the seed list, retried up to
           ``connect_budget.attempts`` times with primaryPreferred reads so
           reads succeed mid-election.
        2. Direct local connect with admin credentials, kept only if a
           privileged metadata read succeeds.
        3. Direct local connect without credentials.

    At most one handle is live at a time: connect() always disconnects the
    previous handle first, and reconnecting replaces it wholesale.

    Thread safety:
        Not thread-safe. One controller (and one manager) per node.
    """

    def __init__(
        self,
        settings: ReplicaSetSettings,
        connector: DataStoreConnectorPort,
        sleeper: SleeperPort,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the connection manager.

        Args:
            settings: Replica set settings (seeds, credentials, budgets).
            connector: Port used to open connections.
            sleeper: Port used to wait between seed-list attempts.
            metrics: Optional port for emitting the connection mode.
        """
        self.settings = settings
        self._connector = connector
        self._sleeper = sleeper
        self._metrics = metrics
        self._client: DataStoreClientPort | None = None
        self._mode: ConnectionMode | None = None

    @property
    def client(self) -> DataStoreClientPort:
        """The live handle.

        Raises:
            ConnectivityError: If connect() has not succeeded yet.
        """
        if self._client is None:
            raise ConnectivityError("Not connected to the data store")
        return self._client

    @property
    def mode(self) -> ConnectionMode | None:
        """How the live handle was obtained, None when disconnected."""
        return self._mode

    @property
    def connected(self) -> bool:
        """True if a handle is live."""
        return self._client is not None

    def is_group_connection(self) -> bool:
        """Return True if the live handle discovered a replica set topology."""
        return self._client is not None and self._client.is_group_connection()

    def is_authenticated(self) -> bool:
        """Return True if the live handle was opened with credentials."""
        return self._client is not None and self._client.is_authenticated()

    def connect(self) -> DataStoreClientPort:
        """Connect through the seed list, falling back to a local connection.

        Seed-list failures are logged and absorbed.

        Returns:
            The new live handle.

        Raises:
            ConnectivityError: If even the unauthenticated local connection fails.
            OperationCancelledError: If cancelled between seed-list attempts.
        """
        self.disconnect()

        if self.settings.seeds:
            client = self._connect_seed_list()
            if client is not None:
                return self._adopt(client, ConnectionMode.GROUP_AWARE)

        logger.info("Can't connect to the replica set")
        logger.info("Attempting to connect locally to %s", self.settings.local_host_key)
        return self._connect_local()

    def disconnect(self) -> None:
        """Close the live handle, if any. Idempotent."""
        if self._client is None:
            return
        logger.info("Disconnecting from the data store")
        try:
            self._client.close()
        finally:
            self._client = None
            self._mode = None

    def _adopt(
        self, client: DataStoreClientPort, mode: ConnectionMode
    ) -> DataStoreClientPort:
        self._client = client
        self._mode = mode
        if self._metrics is not None:
            self._metrics.set_connection_mode(mode.value)
        return client

    def _group_options(self) -> ConnectOptions:
        security = self.settings.security
        return ConnectOptions(
            user=security.admin_user,
            password=security.admin_password,
            connect_timeout_seconds=self.settings.connect_budget.wait_seconds,
            connect_mode=ConnectMode.GROUP_AWARE,
            read_preference=READ_PREFERENCE,
            group_id=self.settings.name,
        )

    def _local_options(self, with_credentials: bool) -> ConnectOptions:
        security = self.settings.security
        return ConnectOptions(
            user=security.admin_user if with_credentials else None,
            password=security.admin_password if with_credentials else None,
            connect_timeout_seconds=self.settings.connect_budget.wait_seconds,
            connect_mode=ConnectMode.DIRECT,
        )

    def _connect_seed_list(self) -> DataStoreClientPort | None:
        """Try the seed list, returning None once the budget is exhausted."""
        budget = self.settings.connect_budget
        seeds = self.settings.seeds
        options = self._group_options()

        for attempt in range(1, budget.attempts + 1):
            self._sleeper.checkpoint()
            logger.info("Connecting to replica set %s via %s", self.settings.name, list(seeds))
            try:
                client = self._connector.connect(seeds, options)
            except ConnectivityError as e:
                # Other members may be briefly unreachable (network partition,
                # rolling restart) before the set can be located.
                logger.info("Failed to connect to replica set: %s", e)
                if budget.has_next(attempt):
                    logger.info(
                        "Failed attempts %d of %d, sleeping %.1f seconds",
                        attempt,
                        budget.attempts,
                        budget.wait_seconds,
                    )
                    self._sleeper.sleep(budget.wait_seconds)
                else:
                    logger.warning("Replica set cannot be located on the network")
                continue

            logger.info("Connected to replica set %s", self.settings.name)
            return client

        return None

    def _connect_local(self) -> DataStoreClientPort:
        address = (self.settings.local_host_key,)

        try:
            client: DataStoreClientPort | None = self._connector.connect(
                address, self._local_options(with_credentials=True)
            )
        except UnauthorizedError as e:
            logger.info("Local credentials rejected: %s", e)
            client = None

        if client is not None:
            try:
                privileged = client.has_admin_privileges()
            except ReplicaSetError as e:
                logger.info("Could not verify local admin privileges: %s", e)
                privileged = False
            if privileged:
                logger.info("Connected locally with auth")
                return self._adopt(client, ConnectionMode.LOCAL_AUTHENTICATED)
            client.close()

        # An uninitiated replica set has no users yet, so fall back to the
        # localhost exception.
        client = self._connector.connect(address, self._local_options(with_credentials=False))
        logger.info("Connected locally using auth bypass")
        return self._adopt(client, ConnectionMode.LOCAL_BYPASS)
