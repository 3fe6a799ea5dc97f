"""Replica set member state table.

Maps the integer state codes reported by replSetGetStatus to semantic names
and defines which states count as alive for eviction purposes.
"""

from __future__ import annotations

from enum import IntEnum


class MemberState(IntEnum):
    """Member state codes reported by the data store.

    Code 4 is unused by the server and deliberately absent.
    """

    STARTUP = 0
    PRIMARY = 1
    SECONDARY = 2
    RECOVERING = 3
    STARTUP2 = 5
    UNKNOWN = 6
    ARBITER = 7
    DOWN = 8
    ROLLBACK = 9
    REMOVED = 10


# Name returned for codes outside the table.
UNMAPPED_STATE_NAME = "NONE"

ALIVE_STATES: frozenset[MemberState] = frozenset(
    {
        MemberState.STARTUP,
        MemberState.PRIMARY,
        MemberState.SECONDARY,
        MemberState.RECOVERING,
        MemberState.STARTUP2,
        MemberState.UNKNOWN,
        MemberState.ARBITER,
        MemberState.ROLLBACK,
    }
)

PRIMARY_STATES: frozenset[MemberState] = frozenset({MemberState.PRIMARY})

# A freshly added member passes through STARTUP2 (initial sync) before it
# becomes a full secondary.
JOINED_STATES: frozenset[MemberState] = frozenset(
    {MemberState.PRIMARY, MemberState.SECONDARY, MemberState.STARTUP2}
)

_BY_CODE: dict[int, MemberState] = {state.value: state for state in MemberState}


def state_from_code(code: int | None) -> MemberState | None:
    """Resolve a state code to a MemberState, or None if unmapped."""
    if code is None or isinstance(code, bool):
        return None
    return _BY_CODE.get(code)


def state_name(code: int | None) -> str:
    """Return the semantic name for a state code.

    Total and pure: every input maps to a name, and codes outside the table
    map to "NONE".

    Args:
        code: Integer state code as reported by the server.

    Returns:
        The state name, e.g. "PRIMARY", or "NONE" for unmapped codes.
    """
    state = state_from_code(code)
    return state.name if state is not None else UNMAPPED_STATE_NAME


def state_from_name(name: str) -> MemberState:
    """Resolve a state name (case-insensitive) to a MemberState.

    Raises:
        KeyError: If the name is not a known state.
    """
    return MemberState[name.strip().upper()]


def is_alive(code: int | None, health: int | None) -> bool:
    """Return True if a member with this state and health must be kept.

    A member is alive only when its state is in ALIVE_STATES and its health
    flag is exactly 1.
    """
    state = state_from_code(code)
    return state in ALIVE_STATES and health == 1
