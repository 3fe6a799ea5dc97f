"""Replica set membership value objects.

GroupConfig mirrors the persisted configuration document
``{_id, version, members: [{_id, host, priority, hidden}]}`` and
StatusSnapshot mirrors the replSetGetStatus reply
``{members: [{name, state, health}]}``. Both keep fields they do not model in
``extra`` so a read-modify-reconfig cycle never drops server settings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from replset.domain.exceptions import ReplicaSetConfigError
from replset.domain.states import MemberState, is_alive, state_from_code, state_name

_MEMBER_FIELDS = ("_id", "host", "priority", "hidden")
_CONFIG_FIELDS = ("_id", "version", "members")


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class SecurityData:
    """Administrative credentials, immutable for the controller's lifetime.

    Attributes:
        admin_user: Name of the administrative user.
        admin_password: Password of the administrative user.
    """

    admin_user: str
    admin_password: str = field(repr=False)

    def __post_init__(self) -> None:
        """Validate credentials."""
        if not self.admin_user or not self.admin_user.strip():
            raise ReplicaSetConfigError("admin_user cannot be empty or whitespace-only")


@dataclass(frozen=True)
class MemberEntry:
    """A single member of a replica set configuration.

    Identity is ``id``; ``host`` ("ip:port") is the join key used for lookups.

    Attributes:
        id: Member id, unique within a configuration. Must be >= 0.
        host: Member address in "host:port" form.
        priority: Election priority, or None when the document omits it.
        hidden: Hidden flag, or None when the document omits it.
        extra: Member fields not modelled here (votes, tags, ...).
    """

    id: int
    host: str
    priority: int | float | None = None
    hidden: bool | None = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        """Validate the member entry."""
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id < 0:
            raise ReplicaSetConfigError(
                f"member _id must be a non-negative integer, got: {self.id!r}"
            )
        if not self.host or not self.host.strip():
            raise ReplicaSetConfigError("member host cannot be empty")
        object.__setattr__(self, "extra", _frozen(self.extra))

    @classmethod
    def new(cls, member_id: int, host: str, visible: bool = True) -> MemberEntry:
        """Build a member to be added, visible members being electable."""
        return cls(
            id=member_id,
            host=host,
            priority=1 if visible else 0,
            hidden=not visible,
        )

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> MemberEntry:
        """Build a MemberEntry from a configuration member document."""
        try:
            member_id = document["_id"]
            host = document["host"]
        except (KeyError, TypeError) as e:
            raise ReplicaSetConfigError(f"Missing required member field: {e}") from e

        return cls(
            id=member_id,
            host=host,
            priority=document.get("priority"),
            hidden=document.get("hidden"),
            extra={k: v for k, v in document.items() if k not in _MEMBER_FIELDS},
        )

    def to_document(self) -> dict[str, Any]:
        """Render the member as a configuration member document."""
        document: dict[str, Any] = {"_id": self.id, "host": self.host}
        if self.priority is not None:
            document["priority"] = self.priority
        if self.hidden is not None:
            document["hidden"] = self.hidden
        document.update(self.extra)
        return document


@dataclass(frozen=True)
class GroupConfig:
    """A replica set configuration document.

    Invariants:
        - member ids are unique
        - version, when present, is >= 1 and only ever incremented here

    Attributes:
        group_id: Replica set name (the document ``_id``).
        version: Configuration version, or None if the document lacks one.
        members: Ordered members of the configuration.
        extra: Top-level fields not modelled here (protocolVersion, settings, ...).
    """

    group_id: str
    version: int | None = None
    members: tuple[MemberEntry, ...] = ()
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        """Validate the configuration."""
        self._validate_group_id()
        self._validate_version()
        self._validate_member_ids()
        object.__setattr__(self, "members", tuple(self.members))
        object.__setattr__(self, "extra", _frozen(self.extra))

    def _validate_group_id(self) -> None:
        if not self.group_id or not str(self.group_id).strip():
            raise ReplicaSetConfigError("group_id cannot be empty")

    def _validate_version(self) -> None:
        if self.version is not None and self.version < 1:
            raise ReplicaSetConfigError(
                f"version must be >= 1, got: {self.version}"
            )

    def _validate_member_ids(self) -> None:
        ids = [member.id for member in self.members]
        if len(ids) != len(set(ids)):
            raise ReplicaSetConfigError(f"member ids must be unique, got: {ids}")

    @classmethod
    def initial(cls, group_id: str, host: str) -> GroupConfig:
        """Build the one-member configuration used by replSetInitiate."""
        return cls(group_id=group_id, members=(MemberEntry(id=0, host=host),))

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> GroupConfig:
        """Build a GroupConfig from the persisted configuration document."""
        try:
            group_id = document["_id"]
        except (KeyError, TypeError) as e:
            raise ReplicaSetConfigError(f"Missing required config field: {e}") from e

        version = document.get("version")
        if version is not None:
            version = int(version)

        return cls(
            group_id=group_id,
            version=version,
            members=tuple(
                MemberEntry.from_document(m) for m in document.get("members", [])
            ),
            extra={k: v for k, v in document.items() if k not in _CONFIG_FIELDS},
        )

    def to_document(self) -> dict[str, Any]:
        """Render the configuration as a document for replSetInitiate/Reconfig."""
        document: dict[str, Any] = {"_id": self.group_id}
        if self.version is not None:
            document["version"] = self.version
        document["members"] = [member.to_document() for member in self.members]
        document.update(self.extra)
        return document

    @property
    def hosts(self) -> tuple[str, ...]:
        """Hosts of all members, in configuration order."""
        return tuple(member.host for member in self.members)

    def has_host(self, host: str) -> bool:
        """Return True if a member with this host exists."""
        return host in self.hosts

    def next_member_id(self) -> int:
        """Return an id not used by any member: 1 + the highest id, or 0."""
        if not self.members:
            return 0
        return max(member.id for member in self.members) + 1

    def with_next_version(self) -> GroupConfig:
        """Return a copy with the version incremented, if there is one."""
        if self.version is None:
            return self
        return replace(self, version=self.version + 1)

    def without_hosts(self, hosts: Iterable[str]) -> GroupConfig:
        """Return a copy without the members whose host is in ``hosts``."""
        excluded = set(hosts)
        return replace(
            self,
            members=tuple(m for m in self.members if m.host not in excluded),
        )

    def with_member(self, member: MemberEntry) -> GroupConfig:
        """Return a copy with ``member`` appended."""
        return replace(self, members=(*self.members, member))


@dataclass(frozen=True)
class MemberStatus:
    """One member as seen in a status reply.

    Attributes:
        host: Member address ("name" in the reply).
        state_code: Raw integer state code.
        health: Health flag, 1 when the member is reachable.
    """

    host: str
    state_code: int | None
    health: int | float | None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> MemberStatus:
        """Build a MemberStatus from a replSetGetStatus member document.

        Raises:
            ReplicaSetConfigError: If the member document is malformed.
        """
        if not isinstance(document, Mapping):
            raise ReplicaSetConfigError(f"Malformed status member: {document!r}")
        state_code = document.get("state")
        if state_code is not None and not isinstance(state_code, int):
            raise ReplicaSetConfigError(f"Malformed member state: {state_code!r}")
        return cls(
            host=document.get("name", ""),
            state_code=state_code,
            health=document.get("health"),
        )

    @property
    def state(self) -> MemberState | None:
        """The mapped state, or None for unmapped codes."""
        return state_from_code(self.state_code)

    @property
    def state_name(self) -> str:
        """The state name, "NONE" for unmapped codes."""
        return state_name(self.state_code)

    @property
    def is_alive(self) -> bool:
        """True when the member must not be evicted."""
        return is_alive(self.state_code, self.health)


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time replica set status. Never cached beyond one call.

    Attributes:
        members: Members as reported by the server.
    """

    members: tuple[MemberStatus, ...] = ()

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> StatusSnapshot:
        """Build a StatusSnapshot from a replSetGetStatus reply.

        Raises:
            ReplicaSetConfigError: If the reply or one of its members is malformed.
        """
        if not isinstance(document, Mapping):
            raise ReplicaSetConfigError("Status reply must be a document")
        members = document.get("members") or []
        if not isinstance(members, (list, tuple)):
            raise ReplicaSetConfigError("Status members must be a list")
        return cls(members=tuple(MemberStatus.from_document(m) for m in members))

    @property
    def hosts(self) -> tuple[str, ...]:
        """Hosts of all reported members."""
        return tuple(member.host for member in self.members)

    def find(self, host: str) -> MemberStatus | None:
        """Return the status of ``host``, or None if it is not reported."""
        for member in self.members:
            if member.host == host:
                return member
        return None

    def state_of(self, host: str) -> MemberState | None:
        """Return the state of ``host``, or None if absent or unmapped."""
        member = self.find(host)
        return member.state if member is not None else None

    def unhealthy_hosts(self) -> tuple[str, ...]:
        """Hosts that are eviction candidates (not alive or not healthy)."""
        return tuple(member.host for member in self.members if not member.is_alive)
