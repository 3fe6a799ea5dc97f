"""Fake data store client and connector for testing.

FakeDataStoreClient keeps a persisted configuration document and a status
document in memory and answers the replica set administrative commands the
use cases issue. Responses can be scripted per command; the last scripted
response is sticky so a single failure or reply can stand for "always".
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from replset.adapters.ports import ConnectMode, ConnectOptions
from replset.domain.exceptions import CommandError, ConnectivityError

ROUTE_GROUP = "group"
ROUTE_LOCAL_AUTH = "local_auth"
ROUTE_LOCAL_BYPASS = "local_bypass"


@dataclass(frozen=True)
class CommandCall:
    """Record of a single administrative command.

    Attributes:
        name: Command name.
        value: Command value (1 or a document).
        arguments: Additional command fields.
        database: Database the command was sent to.
    """

    name: str
    value: Any
    arguments: dict[str, Any] = field(default_factory=dict)
    database: str = "admin"


@dataclass(frozen=True)
class ConnectCall:
    """Record of a single connect() call."""

    addresses: tuple[str, ...]
    options: ConnectOptions
    route: str


def status_document(*members: tuple[str, int, int], group_id: str = "rs0") -> dict[str, Any]:
    """Build a replSetGetStatus reply from (host, state, health) triples."""
    return {
        "set": group_id,
        "members": [
            {"name": host, "state": state, "health": health}
            for host, state, health in members
        ],
        "ok": 1.0,
    }


def config_document(
    version: int, *members: tuple[int, str], group_id: str = "rs0"
) -> dict[str, Any]:
    """Build a persisted configuration document from (id, host) pairs."""
    return {
        "_id": group_id,
        "version": version,
        "protocolVersion": 1,
        "members": [{"_id": member_id, "host": host} for member_id, host in members],
    }


def _route_for(options: ConnectOptions) -> str:
    if options.connect_mode is ConnectMode.GROUP_AWARE:
        return ROUTE_GROUP
    return ROUTE_LOCAL_AUTH if options.has_credentials else ROUTE_LOCAL_BYPASS


class FakeDataStoreClient:
    """Fake implementation of DataStoreClientPort.

    Example:
        >>> client = FakeDataStoreClient(config={"_id": "rs0", "version": 1, "members": []})
        >>> client.find_one("local", "system.replset")["_id"]
        'rs0'
        >>> client.set_result("replSetReconfig", CommandError("not primary"))
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        status: dict[str, Any] | None = None,
        admin_privileges: bool | BaseException = True,
    ) -> None:
        self.config_document: dict[str, Any] | None = copy.deepcopy(config)
        self.status_document: dict[str, Any] | None = copy.deepcopy(status)
        self.admin_privileges = admin_privileges
        self.authenticated = False
        self.group_connection = False
        self.closed = False
        self.close_count = 0
        self._results: dict[str, list[Any]] = {}
        self._calls: list[CommandCall] = []

    @property
    def commands(self) -> list[CommandCall]:
        """Return a copy of all recorded commands, in order."""
        return list(self._calls)

    def calls_named(self, name: str) -> list[CommandCall]:
        """Return recorded commands with the given name."""
        return [call for call in self._calls if call.name == name]

    def set_result(self, name: str, *results: Any) -> None:
        """Script replies for a command.

        Each result is a reply document or an exception to raise. Results are
        consumed in order; the last one is repeated for later calls.
        """
        self._results[name] = list(results)

    def set_status(self, *statuses: Any) -> None:
        """Script replSetGetStatus replies (documents or exceptions)."""
        self.set_result("replSetGetStatus", *statuses)

    def _next_result(self, name: str) -> Any:
        queue = self._results[name]
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def _check_open(self) -> None:
        if self.closed:
            raise ConnectivityError("client is closed")

    def run_admin_command(self, name: str, value: Any = 1, **arguments: Any) -> dict[str, Any]:
        """Record the command and return the scripted or default reply."""
        return self.run_command("admin", name, value, **arguments)

    def run_command(
        self, database: str, name: str, value: Any = 1, **arguments: Any
    ) -> dict[str, Any]:
        """Record the command against ``database`` and reply like run_admin_command."""
        self._check_open()
        self._calls.append(
            CommandCall(name, copy.deepcopy(value), dict(arguments), database)
        )

        if name in self._results:
            result = self._next_result(name)
            if isinstance(result, BaseException):
                raise result
            return copy.deepcopy(result)

        return self._default_reply(name, value)

    def _default_reply(self, name: str, value: Any) -> dict[str, Any]:
        if name == "replSetGetStatus":
            if self.status_document is None:
                raise CommandError(
                    "no replset config has been received",
                    command=name,
                    code=94,
                    code_name="NotYetInitialized",
                )
            return copy.deepcopy(self.status_document)

        if name == "replSetInitiate":
            if self.config_document is not None:
                raise CommandError(
                    "already initialized",
                    command=name,
                    code=23,
                    code_name="AlreadyInitialized",
                )
            self.config_document = {**copy.deepcopy(value), "version": 1}
            return {"ok": 1.0}

        if name == "replSetReconfig":
            self.config_document = copy.deepcopy(value)
            return {"ok": 1.0}

        return {"ok": 1.0}

    def find_one(
        self,
        database: str,
        collection: str,
        filter: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Return the persisted configuration for local.system.replset."""
        self._check_open()
        if (database, collection) == ("local", "system.replset"):
            return copy.deepcopy(self.config_document)
        return None

    def has_admin_privileges(self) -> bool:
        """Return the configured privilege flag, or raise it if it is an exception."""
        self._check_open()
        if isinstance(self.admin_privileges, BaseException):
            raise self.admin_privileges
        return self.admin_privileges

    def is_group_connection(self) -> bool:
        """Return True if the last connect was group-aware."""
        return self.group_connection

    def is_authenticated(self) -> bool:
        """Return True if the last connect carried credentials."""
        return self.authenticated

    def close(self) -> None:
        """Mark the client closed."""
        if not self.closed:
            self.closed = True
            self.close_count += 1


class FakeDataStoreConnector:
    """Fake implementation of DataStoreConnectorPort.

    Connections are routed by kind: "group" (group-aware seed connect),
    "local_auth" (direct with credentials) and "local_bypass" (direct without).
    Every route returns ``client`` unless outcomes were scripted for it.

    Example:
        >>> connector = FakeDataStoreConnector()
        >>> connector.set_outcomes("group", ConnectivityError("unreachable"))
    """

    def __init__(self, client: FakeDataStoreClient | None = None) -> None:
        self.client = client if client is not None else FakeDataStoreClient()
        self._outcomes: dict[str, list[Any]] = {}
        self._calls: list[ConnectCall] = []

    @property
    def calls(self) -> list[ConnectCall]:
        """Return a copy of all connect() calls, in order."""
        return list(self._calls)

    def routes(self) -> list[str]:
        """Return the route of each connect() call, in order."""
        return [call.route for call in self._calls]

    def set_outcomes(self, route: str, *outcomes: Any) -> None:
        """Script outcomes for a route.

        Each outcome is a FakeDataStoreClient or an exception to raise. The
        last outcome is repeated for later calls.
        """
        self._outcomes[route] = list(outcomes)

    def connect(
        self,
        addresses: tuple[str, ...],
        options: ConnectOptions,
    ) -> FakeDataStoreClient:
        """Return the scripted client for the route or raise its error."""
        route = _route_for(options)
        self._calls.append(ConnectCall(tuple(addresses), options, route))

        outcome: Any = self.client
        if route in self._outcomes:
            queue = self._outcomes[route]
            outcome = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(outcome, BaseException):
            raise outcome

        outcome.closed = False
        outcome.authenticated = options.has_credentials
        outcome.group_connection = route == ROUTE_GROUP
        return outcome
