"""StatusReader use case: read replica set status and configuration."""

from __future__ import annotations

import logging

from replset.domain.exceptions import GroupNotFoundError, ReplicaSetError
from replset.domain.membership import GroupConfig, StatusSnapshot
from replset.domain.outcomes import GroupLookup, GroupLookupReason
from replset.domain.states import MemberState
from replset.usecases.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

CONFIG_DATABASE = "local"
CONFIG_COLLECTION = "system.replset"


class StatusReader:
    """Reads membership state through the connection manager's live handle.

    Every call reads fresh: configuration and status may change at any time
    as the rest of the cluster converges, so nothing is cached.
    """

    def __init__(self, connection: ConnectionManager) -> None:
        """Initialize the status reader.

        Args:
            connection: Manager owning the live handle.
        """
        self.connection = connection

    def get_status(self) -> StatusSnapshot:
        """Run replSetGetStatus and normalize the reply.

        Raises:
            CommandError: If the server rejected the command (e.g., not initiated).
            ConnectivityError: If not connected.
        """
        reply = self.connection.client.run_admin_command("replSetGetStatus")
        return StatusSnapshot.from_document(reply)

    def get_config(self) -> GroupConfig:
        """Read the persisted configuration from local.system.replset.

        Raises:
            GroupNotFoundError: If no configuration document exists.
            CommandError: If the read was rejected.
            ConnectivityError: If not connected.
        """
        document = self.connection.client.find_one(CONFIG_DATABASE, CONFIG_COLLECTION)
        if document is None:
            raise GroupNotFoundError("No replica set configuration document found")
        return GroupConfig.from_document(document)

    def lookup_group_name(self) -> GroupLookup:
        """Look up the replica set name, telling absence from read failure."""
        try:
            config = self.get_config()
        except GroupNotFoundError:
            return GroupLookup(name=None, reason=GroupLookupReason.ABSENT)
        except ReplicaSetError as e:
            logger.info("Could not read replica set configuration: %s", e)
            return GroupLookup(name=None, reason=GroupLookupReason.UNREADABLE)
        return GroupLookup(name=config.group_id, reason=GroupLookupReason.FOUND)

    def group_name(self) -> str | None:
        """Return the replica set name, or None when it cannot be found."""
        return self.lookup_group_name().name

    def is_group_initiated(self) -> bool:
        """Return True if a replica set configuration could be read."""
        return self.group_name() is not None

    def member_names(self) -> list[str]:
        """Return the hosts reported by replSetGetStatus."""
        return list(self.get_status().hosts)

    def is_member(self, host_key: str) -> bool:
        """Return True if ``host_key`` is reported by replSetGetStatus."""
        return host_key in self.member_names()

    def state_of(self, host_key: str) -> MemberState | None:
        """Return the reported state of ``host_key``, None if absent or unmapped."""
        return self.get_status().state_of(host_key)
