"""replset-py: Replica set membership bootstrap for data store nodes."""

__version__ = "0.1.0"

from replset.domain.cancellation import CancellationToken
from replset.domain.exceptions import ReplicaSetConfigError, ReplicaSetError
from replset.domain.settings import ReplicaSetSettings
from replset.domain.states import MemberState
from replset.factories import create_membership_controller
from replset.usecases.config_parser import ConfigParser
from replset.usecases.membership_controller import MembershipController

__all__ = [
    "CancellationToken",
    "ConfigParser",
    "MemberState",
    "MembershipController",
    "ReplicaSetConfigError",
    "ReplicaSetError",
    "ReplicaSetSettings",
    "create_membership_controller",
]
