"""Use cases: Application logic layer."""

from replset.usecases.config_parser import ConfigParser
from replset.usecases.connection_manager import ConnectionManager, ConnectionMode
from replset.usecases.group_initiator import GroupInitiator
from replset.usecases.group_reconfigurer import GroupReconfigurer
from replset.usecases.membership_controller import MembershipController
from replset.usecases.role_waiter import RoleWaiter
from replset.usecases.status_reader import StatusReader

__all__ = [
    "ConfigParser",
    "ConnectionManager",
    "ConnectionMode",
    "GroupInitiator",
    "GroupReconfigurer",
    "MembershipController",
    "RoleWaiter",
    "StatusReader",
]
