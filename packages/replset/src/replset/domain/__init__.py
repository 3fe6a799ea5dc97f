"""Domain layer: Entities with zero external dependencies."""

from replset.domain.cancellation import CancellationToken
from replset.domain.exceptions import (
    AmbiguousGroupStateError,
    CommandError,
    CommandErrorKind,
    ConnectivityError,
    GroupNotFoundError,
    OperationCancelledError,
    ReconfigurationError,
    ReplicaSetConfigError,
    ReplicaSetError,
    UnauthorizedError,
)
from replset.domain.membership import (
    GroupConfig,
    MemberEntry,
    MemberStatus,
    SecurityData,
    StatusSnapshot,
)
from replset.domain.retry import RetryBudget
from replset.domain.settings import ReplicaSetSettings
from replset.domain.states import ALIVE_STATES, MemberState, state_name

__all__ = [
    "ALIVE_STATES",
    "AmbiguousGroupStateError",
    "CancellationToken",
    "CommandError",
    "CommandErrorKind",
    "ConnectivityError",
    "GroupConfig",
    "GroupNotFoundError",
    "MemberEntry",
    "MemberState",
    "MemberStatus",
    "OperationCancelledError",
    "ReconfigurationError",
    "ReplicaSetConfigError",
    "ReplicaSetError",
    "ReplicaSetSettings",
    "RetryBudget",
    "SecurityData",
    "StatusSnapshot",
    "UnauthorizedError",
    "state_name",
]
