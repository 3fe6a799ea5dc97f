"""MembershipController use case: make sure this node is part of the replica set.

Runs once per node at provisioning or autoscaling time:

    connect -> read replica set name
        no replica set      -> initiate it with this node, wait for PRIMARY
        not yet a member    -> add this node (evicting failed members),
                               wait for PRIMARY/SECONDARY/STARTUP2
        already a member    -> nothing to do
    -> report this node's observed state
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from replset.domain.exceptions import ReplicaSetError
from replset.domain.outcomes import (
    GroupLookupReason,
    JoinAction,
    JoinResult,
    MembershipChange,
)
from replset.domain.settings import ReplicaSetSettings
from replset.domain.states import MemberState
from replset.usecases.connection_manager import ConnectionManager
from replset.usecases.group_initiator import GroupInitiator
from replset.usecases.group_reconfigurer import GroupReconfigurer
from replset.usecases.role_waiter import RoleWaiter
from replset.usecases.status_reader import StatusReader

logger = logging.getLogger(__name__)

ADMIN_ROLES: tuple[str, ...] = (
    "readWriteAnyDatabase",
    "userAdminAnyDatabase",
    "dbAdminAnyDatabase",
    "clusterAdmin",
)


class MembershipController:
    """Top-level orchestrator composing the membership use cases.

    The controller never hangs past its bounded retry budgets: it returns a
    best-known state (possibly UNKNOWN) or raises on a genuine initiation or
    reconfiguration failure.

    Example:
        >>> controller = create_membership_controller(settings)
        >>> result = controller.ensure_joined()
        >>> result.state
        <MemberState.SECONDARY: 2>
    """

    def __init__(
        self,
        settings: ReplicaSetSettings,
        host_key: str,
        connection: ConnectionManager,
        status_reader: StatusReader,
        role_waiter: RoleWaiter,
        initiator: GroupInitiator,
        reconfigurer: GroupReconfigurer,
    ) -> None:
        """Initialize the controller.

        Args:
            settings: Replica set settings.
            host_key: This node's "ip:port" as other members address it.
            connection: Manager owning the live handle.
            status_reader: Use case for configuration and status reads.
            role_waiter: Use case polling for this node's state.
            initiator: Use case creating the replica set.
            reconfigurer: Use case adding members and evicting failed ones.
        """
        self.settings = settings
        self.host_key = host_key
        self.connection = connection
        self.status_reader = status_reader
        self.role_waiter = role_waiter
        self.initiator = initiator
        self.reconfigurer = reconfigurer

    def ensure_joined(
        self,
        host_key: str | None = None,
        visible: bool = True,
    ) -> JoinResult:
        """Join ``host_key`` (default: this node) to the replica set.

        Args:
            host_key: Member to join. Defaults to this node's host key.
            visible: If False the member is added hidden with priority 0.

        Returns:
            JoinResult with the final observed state and the action taken.

        Raises:
            CommandError: If replSetInitiate failed other than "already initialized".
            ReconfigurationError: If adding the member could not be applied.
            ConnectivityError: If even the local fallback connection failed.
            OperationCancelledError: If cancelled at a sleep or poll boundary.
        """
        host_key = host_key or self.host_key
        self.connection.connect()

        lookup = self.status_reader.lookup_group_name()
        if lookup.name is None:
            if lookup.reason is GroupLookupReason.UNREADABLE:
                logger.warning("Replica set configuration unreadable; attempting initiation")
            self.initiator.initiate(self.settings.key, host_key, async_=False)
            action = JoinAction.INITIATED
        else:
            if lookup.name != self.settings.name:
                logger.warning(
                    "Connected to replica set %s but expected %s",
                    lookup.name,
                    self.settings.name,
                )
            if self._is_member(host_key):
                logger.info("%s is already a member of replica set %s", host_key, lookup.name)
                action = JoinAction.ALREADY_MEMBER
            else:
                self.reconfigurer.add_or_replace(host_key, visible)
                action = JoinAction.ADDED

        return JoinResult(state=self.current_state(host_key), action=action)

    def add_this_host(self, visible: bool = True) -> MembershipChange:
        """Add this node to the replica set, evicting failed members."""
        logger.info("Attempting to add %s to replica set", self.host_key)
        return self.reconfigurer.add_or_replace(self.host_key, visible)

    def current_state(self, host_key: str | None = None) -> MemberState:
        """Return the observed state of ``host_key``, UNKNOWN if unavailable."""
        if host_key is None or host_key == self.host_key:
            return self.role_waiter.observe()

        try:
            state = self.status_reader.state_of(host_key)
        except ReplicaSetError as e:
            logger.info("Could not read member state of %s: %s", host_key, e)
            return MemberState.UNKNOWN
        return state if state is not None else MemberState.UNKNOWN

    def create_user(
        self,
        username: str,
        password: str,
        roles: Sequence[str] = ("read",),
        database: str = "admin",
    ) -> None:
        """Create a user in ``database`` through the live handle.

        Args:
            username: New user name.
            password: New user password.
            roles: Role names granted on ``database``.
            database: Database the user is created in and the roles apply to.
                Clients authenticate against it as their authSource.

        Raises:
            CommandError: If the server rejected createUser.
        """
        logger.info("Creating user %s in %s with roles %s", username, database, list(roles))
        self.connection.client.run_command(
            database,
            "createUser",
            username,
            pwd=password,
            roles=[{"role": role, "db": database} for role in roles],
        )

    def create_admin_user(self) -> None:
        """Create the administrative user from the configured credentials."""
        security = self.settings.security
        self.create_user(security.admin_user, security.admin_password, ADMIN_ROLES)

    def close(self) -> None:
        """Disconnect the live handle."""
        self.connection.disconnect()

    def _is_member(self, host_key: str) -> bool:
        """Return True if ``host_key`` is in the status, False if unreadable."""
        try:
            return self.status_reader.is_member(host_key)
        except ReplicaSetError as e:
            logger.info("Could not read replica set members: %s", e)
            return False
