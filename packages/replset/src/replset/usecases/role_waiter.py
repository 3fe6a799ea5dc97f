"""RoleWaiter use case: poll until this node reaches an expected state."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from replset.adapters.ports import SleeperPort
from replset.domain.exceptions import ReplicaSetError
from replset.domain.outcomes import WaitOutcome, WaitResult
from replset.domain.retry import RetryBudget
from replset.domain.states import MemberState, state_name
from replset.usecases.status_reader import StatusReader

if TYPE_CHECKING:
    from replset.adapters.metrics_port import MetricsPort

logger = logging.getLogger(__name__)


class RoleWaiter:
    """Polls replica set status until a member's state is in an expected set.

    The watched member defaults to this node.

    State machine:
        POLLING -> SATISFIED: the member's state is in the expected set
        POLLING -> TIMED_OUT: ``budget.attempts`` polls without a match

    Read and lookup failures during a poll count as UNKNOWN rather than
    aborting. TIMED_OUT is returned, not raised: callers decide whether a
    slow convergence is fatal.
    """

    def __init__(
        self,
        status_reader: StatusReader,
        host_key: str,
        sleeper: SleeperPort,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the role waiter.

        Args:
            status_reader: Use case reading replSetGetStatus.
            host_key: This node's "ip:port" as reported in the status.
            sleeper: Port used to wait between polls.
            metrics: Optional port for emitting the observed state.
        """
        self.status_reader = status_reader
        self.host_key = host_key
        self._sleeper = sleeper
        self._metrics = metrics

    def observe(self, host_key: str | None = None) -> MemberState:
        """Read the current state of ``host_key`` (default: this node) once.

        Returns UNKNOWN if the state cannot be read.
        """
        host_key = host_key or self.host_key
        try:
            state = self.status_reader.state_of(host_key)
        except ReplicaSetError as e:
            logger.info("Could not read member state of %s: %s", host_key, e)
            state = None

        if state is None:
            state = MemberState.UNKNOWN

        if self._metrics is not None:
            self._metrics.set_member_state(state)
        return state

    def wait_for(
        self,
        expected: Iterable[MemberState],
        budget: RetryBudget,
        host_key: str | None = None,
    ) -> WaitResult:
        """Poll until ``host_key`` is in one of ``expected`` or the budget runs out.

        Args:
            expected: Acceptable states.
            budget: Maximum polls and the wait between them.
            host_key: Member to watch. Defaults to this node.

        Returns:
            WaitResult with SATISFIED or TIMED_OUT and the last observed state.

        Raises:
            OperationCancelledError: If cancelled at a poll or sleep boundary.
        """
        host_key = host_key or self.host_key
        expected_states = frozenset(expected)
        expected_names = ", ".join(sorted(state.name for state in expected_states))
        state = MemberState.UNKNOWN

        attempt = 0
        while attempt < budget.attempts:
            self._sleeper.checkpoint()
            attempt += 1

            state = self.observe(host_key)
            logger.info(
                "Member %s state: %s (attempt %d of %d), waiting for one of %s",
                host_key,
                state_name(state),
                attempt,
                budget.attempts,
                expected_names,
            )

            if state in expected_states:
                return WaitResult(WaitOutcome.SATISFIED, state, attempt)

            if budget.has_next(attempt):
                self._sleeper.sleep(budget.wait_seconds)

        logger.warning(
            "Member %s did not reach %s after %d attempts (last state %s)",
            host_key,
            expected_names,
            attempt,
            state_name(state),
        )
        return WaitResult(WaitOutcome.TIMED_OUT, state, attempt)
