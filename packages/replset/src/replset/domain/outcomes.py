"""Typed results of membership operations.

Operations that absorb failures (role polling, eviction planning, group name
lookup) still report which path they took, so callers and tests can tell a
legitimately absent value from one that could not be determined.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from replset.domain.membership import GroupConfig
from replset.domain.states import MemberState


class WaitOutcome(Enum):
    """Terminal states of the role waiter.

    Attributes:
        SATISFIED: The member reached one of the expected states.
        TIMED_OUT: Attempts were exhausted without a match (non-fatal).
    """

    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class WaitResult:
    """Result of waiting for a member state.

    Attributes:
        outcome: SATISFIED or TIMED_OUT.
        state: Last observed state, UNKNOWN when it could not be read.
        attempts: Number of polls performed.
    """

    outcome: WaitOutcome
    state: MemberState | None
    attempts: int

    @property
    def satisfied(self) -> bool:
        """True if the expected state was reached."""
        return self.outcome is WaitOutcome.SATISFIED


class ReconfigOutcome(Enum):
    """Result of issuing replSetReconfig."""

    APPLIED = "applied"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ReconfigResult:
    """Result of a (possibly retried) reconfiguration.

    Attributes:
        outcome: APPLIED or EXHAUSTED.
        attempts: Number of replSetReconfig commands issued.
        last_error: Error of the final failed attempt, if any.
    """

    outcome: ReconfigOutcome
    attempts: int
    last_error: Exception | None = None

    @property
    def applied(self) -> bool:
        """True if the server accepted the configuration."""
        return self.outcome is ReconfigOutcome.APPLIED


class RemovalReason(Enum):
    """Why an eviction plan has the hosts it has.

    Attributes:
        FOUND: Status was read and candidates (possibly none) selected.
        NO_GROUP: Replica set could not be located; nothing is removed.
        STATUS_UNAVAILABLE: Status could not be read; nothing is removed.
    """

    FOUND = "found"
    NO_GROUP = "no_group"
    STATUS_UNAVAILABLE = "status_unavailable"


@dataclass(frozen=True)
class RemovalPlan:
    """Members selected for eviction.

    Attributes:
        hosts: Hosts to remove. Empty unless reason is FOUND.
        reason: Which path produced the plan.
    """

    hosts: tuple[str, ...]
    reason: RemovalReason


class GroupLookupReason(Enum):
    """Why a replica set name lookup returned what it did."""

    FOUND = "found"
    ABSENT = "absent"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class GroupLookup:
    """Result of looking up the replica set name.

    Attributes:
        name: Replica set name, None unless reason is FOUND.
        reason: FOUND, ABSENT (no configuration document) or UNREADABLE.
    """

    name: str | None
    reason: GroupLookupReason


class InitiationOutcome(Enum):
    """Result of replSetInitiate."""

    INITIATED = "initiated"
    ALREADY_INITIATED = "already_initiated"


@dataclass(frozen=True)
class InitiationResult:
    """Result of initiating the replica set.

    Attributes:
        outcome: INITIATED, or ALREADY_INITIATED when the command was a no-op.
        wait: Result of waiting for PRIMARY, None in async mode or when the
              set was already initiated.
    """

    outcome: InitiationOutcome
    wait: WaitResult | None = None


@dataclass(frozen=True)
class MembershipChange:
    """Result of add_or_replace.

    Attributes:
        config: Configuration that was applied.
        removed: Hosts evicted from the configuration.
        added: True if a new member entry was appended.
        reconfig: Result of the forced reconfiguration.
        wait: Result of waiting for the joined state.
    """

    config: GroupConfig
    removed: tuple[str, ...]
    added: bool
    reconfig: ReconfigResult
    wait: WaitResult


class JoinAction(Enum):
    """What ensure_joined had to do."""

    INITIATED = "initiated"
    ADDED = "added"
    ALREADY_MEMBER = "already_member"


@dataclass(frozen=True)
class JoinResult:
    """Result of ensure_joined.

    Attributes:
        state: Final observed state of this node, UNKNOWN if unavailable.
        action: What was done to join.
    """

    state: MemberState
    action: JoinAction
