"""Step definitions for replica set membership feature."""

import copy

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from replset.adapters.fakes import (
    ROUTE_GROUP,
    ROUTE_LOCAL_AUTH,
    FakeDataStoreClient,
    FakeDataStoreConnector,
    FakeSleeper,
    config_document,
    status_document,
)
from replset.domain.exceptions import ConnectivityError, UnauthorizedError
from replset.domain.membership import SecurityData
from replset.domain.retry import RetryBudget
from replset.domain.settings import ReplicaSetSettings
from replset.domain.states import MemberState
from replset.factories import create_membership_controller
from replset.usecases.membership_controller import MembershipController


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.GroupInitiator")
@scenario("../../features/core/membership.feature", "Initiate a new replica set")
def test_initiate_new_replica_set():
    """Test initiating a replica set with this node as its only member."""
    pass


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.GroupInitiator")
@scenario(
    "../../features/core/membership.feature",
    "Initiation of an already initialized set is a no-op",
)
def test_initiation_is_idempotent():
    """Test repeated initiation is treated as success."""
    pass


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.GroupReconfigurer")
@scenario("../../features/core/membership.feature", "Replace a failed member when joining")
def test_replace_failed_member():
    """Test failed members are evicted while this node is added."""
    pass


@pytest.mark.tier(1)
@pytest.mark.tra("UseCase.ConnectionManager")
@scenario(
    "../../features/core/membership.feature",
    "Fall back to an unauthenticated local connection",
)
def test_local_bypass_fallback():
    """Test the connection fallback chain ends at the unauthenticated handle."""
    pass


@pytest.mark.tier(1)
@pytest.mark.tra("Domain.Policy.Eviction")
@scenario(
    "../../features/core/membership.feature",
    "Nothing is removed when the replica set cannot be located",
)
def test_no_removal_without_group():
    """Test eviction resolves an ambiguous replica set to removing nothing."""
    pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def context():
    """Shared context for passing state between steps."""
    return {"statuses": []}


def _members(text: str) -> list[tuple[int, str]]:
    pairs = []
    for item in text.split(","):
        member_id, host = item.split("=", 1)
        pairs.append((int(member_id), host))
    return pairs


def _controller(
    context: dict, connector: FakeDataStoreConnector, sleeper: FakeSleeper
) -> MembershipController:
    if "controller" not in context:
        settings = ReplicaSetSettings(
            key=context["name"],
            name=context["name"],
            security=SecurityData(admin_user="admin", admin_password="secret"),
            seeds=context["seeds"],
            connect_budget=RetryBudget(attempts=3, wait_seconds=10),
            init_budget=RetryBudget(attempts=5, wait_seconds=3),
            reconfig_budget=RetryBudget(attempts=3, wait_seconds=10),
        )
        context["controller"] = create_membership_controller(
            settings,
            host_key=context["host_key"],
            connector=connector,
            sleeper=sleeper,
        )
    return context["controller"]


def _apply_status(context: dict, data_store: FakeDataStoreClient) -> None:
    if context["statuses"]:
        data_store.status_document = status_document(*context["statuses"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------


@given(parsers.parse('replica set "{name}" with seeds "{seeds}"'))
def given_replica_set(context: dict, name: str, seeds: str):
    """Record the replica set name and seed list."""
    context["name"] = name
    context["seeds"] = tuple(seeds.split(","))


@given(parsers.parse('this node is "{host_key}"'))
def given_this_node(context: dict, host_key: str):
    """Record this node's host key."""
    context["host_key"] = host_key


@given("no replica set configuration exists")
def given_no_configuration(data_store: FakeDataStoreClient):
    """Leave the data store uninitiated."""
    data_store.config_document = None


@given("this node becomes PRIMARY once initiated")
def given_node_becomes_primary(context: dict):
    """Report this node as PRIMARY in the status."""
    context["statuses"].append((context["host_key"], int(MemberState.PRIMARY), 1))


@given(
    parsers.parse(
        'a replica set configuration at version {version:d} with members "{members}"'
    )
)
def given_configuration(
    context: dict, data_store: FakeDataStoreClient, version: int, members: str
):
    """Persist a replica set configuration."""
    data_store.config_document = config_document(
        version, *_members(members), group_id=context["name"]
    )
    context["original_config"] = copy.deepcopy(data_store.config_document)


@given(parsers.parse('member "{host}" is {state} with health {health:d}'))
def given_member_status(context: dict, host: str, state: str, health: int):
    """Report a member in the status."""
    context["statuses"].append((host, int(MemberState[state]), health))


@given("the seed list is unreachable")
def given_seeds_unreachable(connector: FakeDataStoreConnector):
    """Fail every group-aware connection attempt."""
    connector.set_outcomes(ROUTE_GROUP, ConnectivityError("no reachable servers"))


@given("the local admin credentials are rejected")
def given_credentials_rejected(connector: FakeDataStoreConnector):
    """Fail the authenticated local connection."""
    connector.set_outcomes(ROUTE_LOCAL_AUTH, UnauthorizedError("Authentication failed."))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------


@when("the node ensures it has joined")
def ensure_joined(
    context: dict,
    data_store: FakeDataStoreClient,
    connector: FakeDataStoreConnector,
    sleeper: FakeSleeper,
):
    """Run the full join flow."""
    _apply_status(context, data_store)
    context["result"] = _controller(context, connector, sleeper).ensure_joined()


@when(parsers.parse('the node initiates replica set "{name}"'))
def initiate(
    context: dict,
    data_store: FakeDataStoreClient,
    connector: FakeDataStoreConnector,
    sleeper: FakeSleeper,
    name: str,
):
    """Issue replSetInitiate for this node."""
    controller = _controller(context, connector, sleeper)
    controller.connection.connect()
    context["initiation"] = controller.initiator.initiate(name, context["host_key"])


@when("the node is added to the replica set")
def add_node(
    context: dict,
    data_store: FakeDataStoreClient,
    connector: FakeDataStoreConnector,
    sleeper: FakeSleeper,
):
    """Add this node, reporting it as SECONDARY once reconfigured."""
    context["statuses"].append((context["host_key"], int(MemberState.SECONDARY), 1))
    _apply_status(context, data_store)
    controller = _controller(context, connector, sleeper)
    controller.connection.connect()
    context["change"] = controller.add_this_host()


@when("the node connects")
def connect(
    context: dict, connector: FakeDataStoreConnector, sleeper: FakeSleeper
):
    """Connect with the fallback chain."""
    controller = _controller(context, connector, sleeper)
    controller.connection.connect()
    context["mode"] = controller.connection.mode


@when("the members to remove are planned")
def plan_removals(
    context: dict, connector: FakeDataStoreConnector, sleeper: FakeSleeper
):
    """Select eviction candidates."""
    controller = _controller(context, connector, sleeper)
    controller.connection.connect()
    context["plan"] = controller.reconfigurer.plan_removals()


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------


@then("replSetInitiate was sent once with only this node as member 0")
def initiate_sent_once(context: dict, data_store: FakeDataStoreClient):
    """Assert the initiate command and its configuration."""
    calls = data_store.calls_named("replSetInitiate")
    assert len(calls) == 1, f"Expected one replSetInitiate, got {len(calls)}"
    assert calls[0].value == {
        "_id": context["name"],
        "members": [{"_id": 0, "host": context["host_key"]}],
    }


@then(parsers.parse('the join action is "{action}"'))
def join_action_is(context: dict, action: str):
    """Assert the join action."""
    assert context["result"].action.value == action


@then(parsers.parse('the node state is "{state}"'))
def node_state_is(context: dict, state: str):
    """Assert the final observed state."""
    assert context["result"].state is MemberState[state]


@then(parsers.parse('the initiation outcome is "{outcome}"'))
def initiation_outcome_is(context: dict, outcome: str):
    """Assert the initiation outcome."""
    assert context["initiation"].outcome.value == outcome


@then("the replica set configuration is unchanged")
def configuration_unchanged(context: dict, data_store: FakeDataStoreClient):
    """Assert the persisted configuration was not modified."""
    assert data_store.config_document == context["original_config"]


@then(parsers.parse("replSetReconfig was forced with version {version:d}"))
def reconfig_forced(data_store: FakeDataStoreClient, version: int):
    """Assert a single forced reconfig with the incremented version."""
    calls = data_store.calls_named("replSetReconfig")
    assert len(calls) == 1
    assert calls[0].arguments == {"force": True}
    assert calls[0].value["version"] == version


@then(parsers.parse('the new configuration members are "{members}"'))
def configuration_members(data_store: FakeDataStoreClient, members: str):
    """Assert member ids and hosts of the applied configuration."""
    applied = data_store.calls_named("replSetReconfig")[0].value
    assert [(m["_id"], m["host"]) for m in applied["members"]] == _members(members)


@then("the added member has priority 1 and is not hidden")
def added_member_visible(data_store: FakeDataStoreClient):
    """Assert the appended member is electable."""
    added = data_store.calls_named("replSetReconfig")[0].value["members"][-1]
    assert added["priority"] == 1
    assert added["hidden"] is False


@then(parsers.parse('"{host}" was removed'))
def member_removed(context: dict, host: str):
    """Assert the member was evicted."""
    assert host in context["change"].removed


@then(parsers.parse("{count:d} seed list attempts were made"))
def seed_attempts(connector: FakeDataStoreConnector, count: int):
    """Assert the number of group-aware connection attempts."""
    assert connector.routes().count(ROUTE_GROUP) == count


@then(parsers.parse('the connection mode is "{mode}"'))
def connection_mode_is(context: dict, mode: str):
    """Assert how the live handle was obtained."""
    assert context["mode"].value == mode


@then("no members are selected for removal")
def no_removals(context: dict):
    """Assert the eviction plan is empty."""
    assert context["plan"].hosts == ()


@then(parsers.parse('the removal reason is "{reason}"'))
def removal_reason_is(context: dict, reason: str):
    """Assert which path produced the eviction plan."""
    assert context["plan"].reason.value == reason
