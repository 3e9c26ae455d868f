"""Pydantic models for the mediation console."""

from mediation.models.edge import Edge, EdgeCreate
from mediation.models.flow import (
    ActionResponse,
    ActivateVersionRequest,
    CloneRequest,
    Flow,
    FlowCreate,
    FlowStatus,
    FlowStructure,
    FlowUpdate,
    FlowVersion,
    FlowVersionCreate,
    FlowVersionUpdate,
    ValidationResult,
)
from mediation.models.flow_node import (
    FlowNode,
    FlowNodeCreate,
    FlowNodeUpdate,
    NodeSummary,
    SelectedSubnode,
    SubnodeOption,
)
from mediation.models.graph import CanvasEdge, CanvasNode, FlowGraph, Position
from mediation.models.node import (
    ActiveNode,
    DeployNodeVersionRequest,
    NewNodeVersionRequest,
    NodeFamily,
    NodeFamilyCreate,
    NodeVersion,
    NodeVersionCreate,
    NodeVersionState,
    NodeVersionUpdate,
    ScriptContent,
)
from mediation.models.parameter import (
    Parameter,
    ParameterCreate,
    ParameterDatatype,
    ParameterUpdate,
)
from mediation.models.subnode import (
    EditableVersionRequest,
    ParameterValue,
    Subnode,
    SubnodeCreate,
    SubnodeImport,
    SubnodeUpdate,
    SubnodeVersion,
    SubnodeVersionData,
    SubnodeVersionUpdate,
)

__all__ = [
    # Flows
    "Flow",
    "FlowCreate",
    "FlowUpdate",
    "FlowStatus",
    "FlowStructure",
    "FlowVersion",
    "FlowVersionCreate",
    "FlowVersionUpdate",
    "ActivateVersionRequest",
    "CloneRequest",
    "ValidationResult",
    "ActionResponse",
    # Flow nodes and edges
    "FlowNode",
    "FlowNodeCreate",
    "FlowNodeUpdate",
    "NodeSummary",
    "SelectedSubnode",
    "SubnodeOption",
    "Edge",
    "EdgeCreate",
    # Node families
    "NodeFamily",
    "NodeFamilyCreate",
    "NodeVersion",
    "NodeVersionCreate",
    "NodeVersionUpdate",
    "NodeVersionState",
    "NewNodeVersionRequest",
    "DeployNodeVersionRequest",
    "ScriptContent",
    "ActiveNode",
    # Subnodes
    "Subnode",
    "SubnodeCreate",
    "SubnodeUpdate",
    "SubnodeVersion",
    "SubnodeVersionUpdate",
    "SubnodeVersionData",
    "SubnodeImport",
    "EditableVersionRequest",
    "ParameterValue",
    # Parameters
    "Parameter",
    "ParameterCreate",
    "ParameterUpdate",
    "ParameterDatatype",
    # Canvas
    "Position",
    "CanvasNode",
    "CanvasEdge",
    "FlowGraph",
]
