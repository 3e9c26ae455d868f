"""Services for the mediation console."""

from mediation.services.flow_validator import FlowValidator
from mediation.services.graph_assembly import GraphAssembler, assemble_graph, classify_node_type
from mediation.services.lifecycle import FlowAction, flow_transition

__all__ = [
    "FlowAction",
    "FlowValidator",
    "GraphAssembler",
    "assemble_graph",
    "classify_node_type",
    "flow_transition",
]
