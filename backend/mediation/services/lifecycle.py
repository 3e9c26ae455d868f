"""Lifecycle guards for flows, node versions and subnode versions.

Each guard raises LifecycleError when the requested transition is not
allowed from the entity's current state, and otherwise returns the flag
values the transition produces.

Example:
    flags = flow_transition(flow, FlowAction.DEPLOY)
    # {"is_deployed": True, "is_running": False}
"""

from collections.abc import Callable
from enum import Enum

from mediation.errors import LifecycleError
from mediation.models import Flow, NodeVersion, SubnodeVersion


class FlowAction(str, Enum):
    """Operator actions that change a flow's deployment flags."""

    DEPLOY = "deploy"
    UNDEPLOY = "undeploy"
    START = "start"
    STOP = "stop"


# action -> (precondition, refusal message, resulting flags)
_FLOW_TRANSITIONS: dict[FlowAction, tuple[Callable[[Flow], bool], str, dict[str, bool]]] = {
    FlowAction.DEPLOY: (
        lambda f: not f.is_deployed,
        "Flow is already deployed",
        {"is_deployed": True, "is_running": False},
    ),
    # Undeploying a running flow stops it as well
    FlowAction.UNDEPLOY: (
        lambda f: f.is_deployed,
        "Flow is not deployed",
        {"is_deployed": False, "is_running": False},
    ),
    FlowAction.START: (
        lambda f: f.is_deployed and not f.is_running,
        "Only a deployed flow that is not running can be started",
        {"is_deployed": True, "is_running": True},
    ),
    FlowAction.STOP: (
        lambda f: f.is_deployed and f.is_running,
        "Flow is not running",
        {"is_deployed": True, "is_running": False},
    ),
}


def flow_transition(flow: Flow, action: FlowAction) -> dict[str, bool]:
    """Check a flow action and return the flags it produces."""
    allowed, message, flags = _FLOW_TRANSITIONS[action]
    if not allowed(flow):
        raise LifecycleError(f"Cannot {action.value} flow '{flow.name}': {message}", entity="flow")
    return dict(flags)


def check_flow_editable(flow: Flow) -> None:
    """Structure and metadata of a deployed flow are read-only."""
    if flow.is_deployed:
        raise LifecycleError(
            f"Flow '{flow.name}' is deployed; undeploy it before editing", entity="flow"
        )


def check_flow_deletable(flow: Flow) -> None:
    if flow.is_deployed:
        raise LifecycleError(
            f"Flow '{flow.name}' is deployed and cannot be deleted", entity="flow"
        )


def check_flow_version_editable(flow: Flow, version: int, active_version: int | None) -> None:
    """The active version of a deployed flow is the one in effect."""
    if flow.is_deployed and version == active_version:
        raise LifecycleError(
            f"Version {version} of flow '{flow.name}' is deployed; "
            "create a new version to make changes",
            entity="flow_version",
        )


def check_node_version_editable(version: NodeVersion) -> None:
    if version.is_published:
        raise LifecycleError(
            f"Node version {version.version} is published; create a new version to edit it",
            entity="node_version",
        )


def check_node_version_deletable(version: NodeVersion) -> None:
    if version.is_published:
        raise LifecycleError(
            f"Node version {version.version} is published and cannot be deleted",
            entity="node_version",
        )


def check_subnode_version_editable(version: SubnodeVersion) -> None:
    if version.is_deployed or not version.is_editable:
        raise LifecycleError(
            f"Subnode version {version.version} is not editable; "
            "create a new editable version instead",
            entity="subnode_version",
        )
