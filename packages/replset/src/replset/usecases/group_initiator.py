"""GroupInitiator use case: create the replica set with this node as its only member."""

from __future__ import annotations

import logging

from replset.domain.exceptions import CommandError
from replset.domain.membership import GroupConfig
from replset.domain.outcomes import InitiationOutcome, InitiationResult
from replset.domain.retry import DEFAULT_INIT_BUDGET, RetryBudget
from replset.domain.states import PRIMARY_STATES
from replset.usecases.connection_manager import ConnectionManager
from replset.usecases.role_waiter import RoleWaiter

logger = logging.getLogger(__name__)


class GroupInitiator:
    """Issues replSetInitiate and optionally waits for this node to become primary.

    Initiation is at-most-once in effect: a replica set that is already
    initialized makes the command a successful no-op, so it is safe to retry.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        role_waiter: RoleWaiter,
        budget: RetryBudget = DEFAULT_INIT_BUDGET,
    ) -> None:
        """Initialize the initiator.

        Args:
            connection: Manager owning the live handle.
            role_waiter: Use case polling for this node's state.
            budget: Polling budget while waiting for PRIMARY.
        """
        self.connection = connection
        self.role_waiter = role_waiter
        self.budget = budget

    def initiate(
        self,
        group_key: str,
        host_key: str,
        async_: bool = False,
    ) -> InitiationResult:
        """Initiate the replica set ``group_key`` with ``host_key`` as member 0.

        Args:
            group_key: Replica set id.
            host_key: This node's "ip:port".
            async_: If False, wait for this node to become PRIMARY. The wait
                timing out is reported in the result, not raised.

        Returns:
            InitiationResult telling whether the command initiated the set.

        Raises:
            CommandError: If replSetInitiate failed for any reason other than
                the set already being initialized.
        """
        config = GroupConfig.initial(group_key, host_key)
        logger.info("Initiating replica set %s with member %s", group_key, host_key)

        try:
            self.connection.client.run_admin_command(
                "replSetInitiate", config.to_document()
            )
        except CommandError as e:
            if not e.is_already_initialized:
                raise
            logger.info("Replica set %s previously initiated: %s", group_key, e)
            return InitiationResult(InitiationOutcome.ALREADY_INITIATED)

        if async_:
            return InitiationResult(InitiationOutcome.INITIATED)

        # The initiating member is the only member, so it must become primary.
        wait = self.role_waiter.wait_for(PRIMARY_STATES, self.budget, host_key)
        return InitiationResult(InitiationOutcome.INITIATED, wait)
