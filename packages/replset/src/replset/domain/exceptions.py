"""Domain exceptions.

Exception hierarchy:
- ReplicaSetError: Base domain exception. Everything raised by this package
  derives from it, so a provisioning driver can catch a single type.
  - ReplicaSetConfigError: invalid settings or configuration documents.
  - ConnectivityError: no reachable endpoint.
    - UnauthorizedError: the endpoint rejected the supplied credentials.
  - CommandError: an administrative command was rejected by the server.
  - GroupNotFoundError: no persisted replica set configuration exists.
  - AmbiguousGroupStateError: replica set existence could not be determined.
  - ReconfigurationError: a forced reconfiguration exhausted its retries.
  - OperationCancelledError: the caller cancelled a long-running operation.

Convergence timeouts are deliberately not exceptions: they are reported as
WaitOutcome.TIMED_OUT by the role waiter.
"""

from __future__ import annotations

import re
from enum import Enum

# Server error code and name for a repeated replSetInitiate.
ALREADY_INITIALIZED_CODE = 23
ALREADY_INITIALIZED_CODE_NAME = "AlreadyInitialized"

# Message fallback for servers that only expose text. Message text is not a
# stable contract, so this is the only place it is matched.
ALREADY_INITIALIZED_PATTERN = re.compile(r"already initialized", re.IGNORECASE)


class CommandErrorKind(Enum):
    """Classification of a rejected administrative command.

    Attributes:
        ALREADY_INITIALIZED: replSetInitiate against an initiated replica set.
        OTHER: Any other rejection.
    """

    ALREADY_INITIALIZED = "already_initialized"
    OTHER = "other"


def classify_command_failure(
    code: int | None,
    code_name: str | None,
    message: str,
) -> CommandErrorKind:
    """Classify a command failure from its structured code or message text.

    The structured code (23 / "AlreadyInitialized") wins when present. Only
    when the server reports neither is the message matched against
    ALREADY_INITIALIZED_PATTERN.

    Args:
        code: Numeric server error code, if reported.
        code_name: Symbolic server error name, if reported.
        message: Human-readable error message.

    Returns:
        The CommandErrorKind for the failure.
    """
    if code == ALREADY_INITIALIZED_CODE or code_name == ALREADY_INITIALIZED_CODE_NAME:
        return CommandErrorKind.ALREADY_INITIALIZED

    if code is None and code_name is None and ALREADY_INITIALIZED_PATTERN.search(message):
        return CommandErrorKind.ALREADY_INITIALIZED

    return CommandErrorKind.OTHER


class ReplicaSetError(Exception):
    """Base exception for all replica set membership errors."""

    pass


class ReplicaSetConfigError(ReplicaSetError):
    """Raised when settings or a replica set configuration document are invalid.

    Raised by domain entities (e.g., ReplicaSetSettings, GroupConfig) and by
    the ConfigParser use case when validation fails.
    """

    pass


class ConnectivityError(ReplicaSetError):
    """Raised when no endpoint could be reached.

    Attributes:
        message: Human-readable error description.
        addresses: The addresses that were tried.
        original_error: The underlying driver exception (optional).
    """

    def __init__(
        self,
        message: str,
        addresses: tuple[str, ...] = (),
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ConnectivityError.

        Args:
            message: Human-readable error description.
            addresses: The addresses that were tried.
            original_error: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.message = message
        self.addresses = addresses
        self.original_error = original_error


class UnauthorizedError(ConnectivityError):
    """Raised when an endpoint was reached but rejected the credentials."""

    pass


class CommandError(ReplicaSetError):
    """Raised when an administrative command is rejected.

    Attributes:
        message: Server error message.
        command: Name of the rejected command.
        code: Numeric server error code, if reported.
        code_name: Symbolic server error name, if reported.
        kind: Classification used to tell benign rejections from fatal ones.
    """

    def __init__(
        self,
        message: str,
        command: str = "",
        code: int | None = None,
        code_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.command = command
        self.code = code
        self.code_name = code_name
        self.kind = classify_command_failure(code, code_name, message)

    @property
    def is_already_initialized(self) -> bool:
        """Return True if the failure means the replica set already exists."""
        return self.kind is CommandErrorKind.ALREADY_INITIALIZED


class GroupNotFoundError(ReplicaSetError):
    """Raised when no persisted replica set configuration document exists."""

    pass


class AmbiguousGroupStateError(ReplicaSetError):
    """Raised when replica set existence cannot be determined.

    A missing replica set may mean that every member is faulty or that this
    node is on the wrong side of a network partition. Removing members from a
    configuration that cannot be located is unsafe.
    """

    pass


class ReconfigurationError(ReplicaSetError):
    """Raised when a forced reconfiguration exhausted its retry budget.

    Attributes:
        attempts: Number of replSetReconfig attempts made.
        last_error: The error from the final attempt.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class OperationCancelledError(ReplicaSetError):
    """Raised at a sleep or poll boundary once cancellation was requested."""

    pass
