"""GroupReconfigurer use case: add this node and evict failed members."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from replset.adapters.ports import SleeperPort
from replset.domain.exceptions import (
    AmbiguousGroupStateError,
    CommandError,
    ConnectivityError,
    ReconfigurationError,
    ReplicaSetError,
)
from replset.domain.membership import GroupConfig, MemberEntry
from replset.domain.outcomes import (
    MembershipChange,
    ReconfigOutcome,
    ReconfigResult,
    RemovalPlan,
    RemovalReason,
)
from replset.domain.retry import DEFAULT_RECONFIG_BUDGET, RECONNECT_DELAY, RetryBudget
from replset.domain.states import JOINED_STATES
from replset.usecases.connection_manager import ConnectionManager
from replset.usecases.role_waiter import RoleWaiter
from replset.usecases.status_reader import StatusReader

if TYPE_CHECKING:
    from replset.adapters.metrics_port import MetricsPort

logger = logging.getLogger(__name__)


class GroupReconfigurer:
    """Computes and applies new replica set configurations.

    The persisted configuration is the one shared mutable resource of the
    cluster. It is never locked: each change is read-modify-reconfig with an
    incremented version, and the server accepts or rejects it atomically.
    Forced reconfigurations are retried because a node outside the majority
    races with the cluster's own convergence.

    Dependencies:
        - ConnectionManager: live handle, re-established after reconfiguring
        - StatusReader: fresh configuration and status reads
        - RoleWaiter: confirms this node reaches a joined state
        - SleeperPort: waits between forced retries and before reconnecting
    """

    def __init__(
        self,
        connection: ConnectionManager,
        status_reader: StatusReader,
        role_waiter: RoleWaiter,
        sleeper: SleeperPort,
        budget: RetryBudget = DEFAULT_RECONFIG_BUDGET,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the reconfigurer.

        Args:
            connection: Manager owning the live handle.
            status_reader: Use case for configuration and status reads.
            role_waiter: Use case polling for this node's state.
            sleeper: Port used for all waits.
            budget: Forced retry budget, also used to wait for the joined state.
            metrics: Optional port for emitting version and eviction metrics.
        """
        self.connection = connection
        self.status_reader = status_reader
        self.role_waiter = role_waiter
        self.budget = budget
        self._sleeper = sleeper
        self._metrics = metrics

    def reconfig(self, config: GroupConfig, force: bool = False) -> ReconfigResult:
        """Issue replSetReconfig, retrying forced reconfigurations.

        Args:
            config: Configuration to apply.
            force: If True, failures are retried up to ``budget.attempts``
                times; otherwise the first failure propagates.

        Returns:
            ReconfigResult: APPLIED, or EXHAUSTED with the last error when every
            forced attempt failed.

        Raises:
            CommandError: If a non-forced reconfiguration was rejected.
            ConnectivityError: If a non-forced reconfiguration lost the connection.
        """
        document = config.to_document()
        last_error: ReplicaSetError | None = None

        attempt = 0
        while attempt < self.budget.attempts:
            self._sleeper.checkpoint()
            attempt += 1
            try:
                self.connection.client.run_admin_command(
                    "replSetReconfig", document, force=force
                )
            except (CommandError, ConnectivityError) as e:
                if not force:
                    raise
                last_error = e
                logger.info(
                    "Reconfig attempt %d of %d failed: %s",
                    attempt,
                    self.budget.attempts,
                    e,
                )
                if self.budget.has_next(attempt):
                    self._sleeper.sleep(self.budget.wait_seconds)
                continue

            if self._metrics is not None and config.version is not None:
                self._metrics.set_config_version(config.version)
            return ReconfigResult(ReconfigOutcome.APPLIED, attempt)

        return ReconfigResult(ReconfigOutcome.EXHAUSTED, attempt, last_error)

    def get_members_to_remove(self) -> list[str]:
        """Return hosts whose state is not alive or whose health is not 1.

        Raises:
            AmbiguousGroupStateError: If the replica set cannot be located.
                That can mean every member is faulty or that this node is
                partitioned, and removing members is only safe in neither case.
            CommandError: If the status could not be read.
        """
        if not self.status_reader.is_group_initiated():
            raise AmbiguousGroupStateError(
                "Replica set could not be found. No members will be removed from config."
            )
        return list(self.status_reader.get_status().unhealthy_hosts())

    def plan_removals(self) -> RemovalPlan:
        """Select eviction candidates, resolving any doubt to removing nothing."""
        try:
            hosts = self.get_members_to_remove()
        except AmbiguousGroupStateError as e:
            logger.info("%s", e)
            return RemovalPlan(hosts=(), reason=RemovalReason.NO_GROUP)
        except ReplicaSetError as e:
            logger.info("Could not determine members to remove: %s", e)
            return RemovalPlan(hosts=(), reason=RemovalReason.STATUS_UNAVAILABLE)
        return RemovalPlan(hosts=tuple(hosts), reason=RemovalReason.FOUND)

    def build_config(
        self,
        current: GroupConfig,
        host_key: str,
        removals: tuple[str, ...],
        visible: bool = True,
    ) -> tuple[GroupConfig, bool]:
        """Compute the next configuration from ``current``.

        The version is incremented, members in ``removals`` are stripped and
        ``host_key`` is appended with id 1 + the highest remaining id, unless
        it is already a member or is itself being removed.

        Returns:
            The new configuration and whether a member was appended.
        """
        config = current.with_next_version()

        if removals:
            logger.info("Target members to remove from replica set: %s", list(removals))
            config = config.without_hosts(removals)

        if config.has_host(host_key) or host_key in removals:
            return config, False

        member = MemberEntry.new(config.next_member_id(), host_key, visible)
        return config.with_member(member), True

    def add_or_replace(self, host_key: str, visible: bool = True) -> MembershipChange:
        """Add ``host_key`` to the replica set, evicting failed members.

        Args:
            host_key: "ip:port" of the member to add.
            visible: If False the member is added hidden with priority 0.

        Returns:
            MembershipChange describing the applied configuration and the
            result of waiting for the joined state. A wait timeout is logged
            and reported, not raised.

        Raises:
            ReconfigurationError: If every forced reconfig attempt failed.
            GroupNotFoundError: If there is no configuration to change.
            OperationCancelledError: If cancelled at a sleep or poll boundary.
        """
        current = self.status_reader.get_config()
        plan = self.plan_removals()
        config, added = self.build_config(current, host_key, plan.hosts, visible)
        removed = tuple(h for h in plan.hosts if current.has_host(h))

        logger.info("Reconfiguring replica set: %s", config.to_document())
        result = self.reconfig(config, force=True)
        if not result.applied:
            logger.error(
                "Reconfiguring replica set failed after %d attempts: %s",
                result.attempts,
                result.last_error,
            )
            raise ReconfigurationError(
                f"Reconfiguring replica set {config.group_id} failed after "
                f"{result.attempts} attempts",
                attempts=result.attempts,
                last_error=result.last_error,
            ) from result.last_error

        if self._metrics is not None:
            self._metrics.set_members_removed(len(removed))

        # The previous handle may point at a member that was just demoted or removed.
        self._sleeper.sleep(RECONNECT_DELAY)
        self.connection.connect()

        wait = self.role_waiter.wait_for(JOINED_STATES, self.budget, host_key)
        if not wait.satisfied:
            logger.warning(
                "Member %s has not joined yet; the replica set may still be converging",
                host_key,
            )

        return MembershipChange(
            config=config,
            removed=removed,
            added=added,
            reconfig=result,
            wait=wait,
        )
