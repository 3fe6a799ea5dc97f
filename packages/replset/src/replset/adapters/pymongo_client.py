"""PyMongo-based implementation of the data store ports.

PyMongoConnector opens MongoClient connections from ConnectOptions and
PyMongoClientAdapter exposes them through DataStoreClientPort. Driver errors
are translated to the domain taxonomy here and nowhere else.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from replset.adapters.ports import (
    ConnectMode,
    ConnectOptions,
    DataStoreClientPort,
    DataStoreConnectorPort,
)
from replset.domain.exceptions import CommandError, ConnectivityError, UnauthorizedError

logger = logging.getLogger(__name__)

# Server error codes for rejected credentials and missing privileges.
AUTHENTICATION_FAILED_CODE = 18
UNAUTHORIZED_CODE = 13
_AUTH_ERROR_CODES = frozenset({AUTHENTICATION_FAILED_CODE, UNAUTHORIZED_CODE})

_REPLICA_SET_TOPOLOGIES = frozenset({"ReplicaSetWithPrimary", "ReplicaSetNoPrimary"})


def _code_name(error: OperationFailure) -> str | None:
    details = error.details or {}
    return details.get("codeName")


def _command_error(command: str, error: OperationFailure) -> CommandError:
    details = error.details or {}
    message = details.get("errmsg") or str(error)
    return CommandError(
        message,
        command=command,
        code=error.code,
        code_name=_code_name(error),
    )


class PyMongoClientAdapter:
    """DataStoreClientPort implementation wrapping a pymongo MongoClient.

    Example:
        >>> adapter = PyMongoConnector().connect(("127.0.0.1:27017",), ConnectOptions())
        >>> adapter.run_admin_command("replSetGetStatus")["members"]
    """

    def __init__(self, client: MongoClient, options: ConnectOptions) -> None:
        """Initialize adapter with a connected MongoClient.

        Args:
            client: Connected pymongo client.
            options: Options the client was opened with.
        """
        self._client = client
        self._options = options
        self._closed = False

    def run_admin_command(self, name: str, value: Any = 1, **arguments: Any) -> dict[str, Any]:
        """Run an administrative command against the admin database."""
        return self._command(self._client.admin, name, value, arguments)

    def run_command(
        self, database: str, name: str, value: Any = 1, **arguments: Any
    ) -> dict[str, Any]:
        """Run a command against ``database``."""
        return self._command(self._client[database], name, value, arguments)

    def _command(
        self, database: Any, name: str, value: Any, arguments: dict[str, Any]
    ) -> dict[str, Any]:
        try:
            reply = database.command(name, value, **arguments)
        except OperationFailure as e:
            raise _command_error(name, e) from e
        except ConnectionFailure as e:
            raise ConnectivityError(
                f"Lost connection while running {name}: {e}", original_error=e
            ) from e
        except PyMongoError as e:
            raise CommandError(str(e), command=name) from e
        return dict(reply)

    def find_one(
        self,
        database: str,
        collection: str,
        filter: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Return the first matching document of ``database.collection``."""
        command = f"find {database}.{collection}"
        try:
            document = self._client[database][collection].find_one(filter or {})
        except OperationFailure as e:
            raise _command_error(command, e) from e
        except ConnectionFailure as e:
            raise ConnectivityError(
                f"Lost connection while reading {database}.{collection}: {e}",
                original_error=e,
            ) from e
        except PyMongoError as e:
            raise CommandError(str(e), command=command) from e
        return dict(document) if document is not None else None

    def has_admin_privileges(self) -> bool:
        """Attempt a privileged metadata read on the admin database.

        Returns:
            True if collections can be listed, False if the server reports the
            connection as unauthorized.

        Raises:
            ConnectivityError: If the server could not be reached.
        """
        try:
            self._client[self._options.database].list_collection_names()
        except OperationFailure as e:
            if e.code in _AUTH_ERROR_CODES:
                return False
            raise _command_error("listCollections", e) from e
        except ConnectionFailure as e:
            raise ConnectivityError(
                f"Lost connection while checking privileges: {e}", original_error=e
            ) from e
        return True

    def is_group_connection(self) -> bool:
        """Return True if the client discovered a replica set topology."""
        description = self._client.topology_description
        return description.topology_type_name in _REPLICA_SET_TOPOLOGIES

    def is_authenticated(self) -> bool:
        """Return True if the client was opened with credentials."""
        return self._options.has_credentials

    def close(self) -> None:
        """Close all pooled sockets. Idempotent."""
        if self._closed:
            return
        self._client.close()
        self._closed = True


class PyMongoConnector:
    """DataStoreConnectorPort implementation opening pymongo clients.

    MongoClient connects lazily, so every connection is verified with a
    ``ping`` before it is handed out.
    """

    def __init__(self, client_factory: Callable[..., MongoClient] = MongoClient) -> None:
        """Initialize the connector.

        Args:
            client_factory: Callable building a MongoClient, injectable for tests.
        """
        self._client_factory = client_factory

    def build_client_kwargs(self, options: ConnectOptions) -> dict[str, Any]:
        """Translate ConnectOptions to MongoClient keyword arguments."""
        timeout_ms = int(options.connect_timeout_seconds * 1000)
        kwargs: dict[str, Any] = {
            "connectTimeoutMS": timeout_ms,
            "serverSelectionTimeoutMS": timeout_ms,
        }

        if options.has_credentials:
            kwargs["username"] = options.user
            kwargs["password"] = options.password
            kwargs["authSource"] = options.database

        if options.connect_mode is ConnectMode.DIRECT:
            kwargs["directConnection"] = True
        else:
            kwargs["directConnection"] = False
            if options.group_id is not None:
                kwargs["replicaSet"] = options.group_id
            if options.read_preference is not None:
                kwargs["readPreference"] = options.read_preference

        return kwargs

    def connect(
        self,
        addresses: tuple[str, ...],
        options: ConnectOptions,
    ) -> PyMongoClientAdapter:
        """Open and verify a connection to ``addresses``.

        Raises:
            UnauthorizedError: If the server rejected the credentials.
            ConnectivityError: If no address could be reached.
        """
        if not addresses:
            raise ConnectivityError("No addresses to connect to")

        try:
            client = self._client_factory(list(addresses), **self.build_client_kwargs(options))
        except PyMongoError as e:
            raise ConnectivityError(
                f"Invalid connection options for {list(addresses)}: {e}",
                addresses=addresses,
                original_error=e,
            ) from e

        try:
            client.admin.command("ping")
        except OperationFailure as e:
            client.close()
            if e.code in _AUTH_ERROR_CODES:
                raise UnauthorizedError(
                    f"Credentials rejected by {list(addresses)}: {e}",
                    addresses=addresses,
                    original_error=e,
                ) from e
            raise ConnectivityError(
                f"Connection check failed for {list(addresses)}: {e}",
                addresses=addresses,
                original_error=e,
            ) from e
        except PyMongoError as e:
            client.close()
            raise ConnectivityError(
                f"Could not reach {list(addresses)}: {e}",
                addresses=addresses,
                original_error=e,
            ) from e

        logger.debug(
            "Connected to %s (mode=%s, authenticated=%s)",
            list(addresses),
            options.connect_mode.value,
            options.has_credentials,
        )
        return PyMongoClientAdapter(client, options)


# Runtime protocol checks
assert isinstance(
    PyMongoClientAdapter.__new__(PyMongoClientAdapter), DataStoreClientPort
), "PyMongoClientAdapter must implement DataStoreClientPort"
assert isinstance(
    PyMongoConnector.__new__(PyMongoConnector), DataStoreConnectorPort
), "PyMongoConnector must implement DataStoreConnectorPort"
