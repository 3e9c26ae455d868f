"""Pydantic models for FlowNode placements."""

from pydantic import BaseModel, Field

from mediation.models.edge import Edge
from mediation.models.subnode import ParameterValue


class SubnodeOption(BaseModel):
    """A subnode that can be selected for a placement."""

    id: str
    name: str
    is_selected: bool = False


class NodeSummary(BaseModel):
    """The node family a flow node places, as seen from the flow."""

    id: str
    name: str
    node_type: str | None = None
    subnodes: list[SubnodeOption] = []


class SelectedSubnode(BaseModel):
    """The subnode implementation bound to a flow node."""

    id: str
    name: str
    parameter_values: list[ParameterValue] = []


class FlowNodeCreate(BaseModel):
    """Request model for adding a node family to a flow."""

    flow_id: str
    node_id: str
    order: int | None = None
    from_node: str | None = None
    selected_subnode: str | None = None


class FlowNodeUpdate(BaseModel):
    """Request model for patching a flow node.

    Only fields present in the request body are applied, so ``from_node`` and
    ``selected_subnode`` can be cleared by sending ``null``.
    """

    order: int | None = None
    from_node: str | None = None
    selected_subnode: str | None = None


class FlowNode(BaseModel):
    """A placement of a node family inside a flow."""

    id: str
    flow_id: str
    order: int
    node: NodeSummary
    selected_subnode: SelectedSubnode | None = None
    from_node: str | None = None
    outgoing_edges: list[Edge] = Field(default_factory=list)
