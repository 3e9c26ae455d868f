"""Assembles a flow structure into canvas nodes and edges.

The structure returned by the service lists every edge twice (once inside
its source node's ``outgoing_edges`` and once at flow level), and older data
may repeat a placement. Assembly deduplicates both, classifies each node for
display, and lays the nodes out on a fixed grid.
"""

import logging

from mediation.models import (
    CanvasEdge,
    CanvasNode,
    Edge,
    FlowGraph,
    FlowNode,
    FlowStructure,
    Position,
)

logger = logging.getLogger(__name__)

GRID_COLUMNS = 4
GRID_X_STEP = 300
GRID_Y_STEP = 200
GRID_OFFSET = 100

DEFAULT_NODE_TYPE = "generic"

# First match wins
NODE_TYPE_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("sftp", "collector"), "sftp_collector"),
    (("fdc",), "fdc"),
    (("asn1", "decoder"), "asn1_decoder"),
    (("ascii",), "ascii_decoder"),
    (("validation",), "validation_bln"),
    (("enrichment",), "enrichment_bln"),
    (("encoder",), "encoder"),
    (("diameter",), "diameter_interface"),
    (("backup",), "raw_backup"),
]


def classify_node_type(name: str, node_type: str | None = None) -> str:
    """Display type of a node family.

    An explicit ``node_type`` wins; otherwise the name is matched against the
    keyword table.
    """
    if node_type:
        return node_type

    lowered = name.lower()
    for keywords, display_type in NODE_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return display_type
    return DEFAULT_NODE_TYPE


def grid_position(index: int) -> Position:
    return Position(
        x=(index % GRID_COLUMNS) * GRID_X_STEP + GRID_OFFSET,
        y=(index // GRID_COLUMNS) * GRID_Y_STEP + GRID_OFFSET,
    )


def unique_flow_nodes(flow_nodes: list[FlowNode]) -> list[FlowNode]:
    """Drop repeated placements, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for flow_node in flow_nodes:
        if flow_node.id in seen:
            continue
        seen.add(flow_node.id)
        unique.append(flow_node)
    return unique


def collect_edges(structure: FlowStructure) -> list[Edge]:
    """Gather edges from the nodes and the flow, one per (from, to) pair."""
    seen_ids: set[str] = set()
    seen_pairs: set[tuple[str, str]] = set()
    edges = []

    candidates = [e for n in structure.flow_nodes for e in n.outgoing_edges] + list(structure.edges)
    for edge in candidates:
        pair = (edge.from_node, edge.to_node)
        if edge.id in seen_ids or pair in seen_pairs:
            continue
        seen_ids.add(edge.id)
        seen_pairs.add(pair)
        edges.append(edge)
    return edges


class GraphAssembler:
    """Turns a FlowStructure into a FlowGraph."""

    def assemble(self, structure: FlowStructure) -> FlowGraph:
        flow_nodes = unique_flow_nodes(structure.flow_nodes)
        nodes = [self._canvas_node(n, i) for i, n in enumerate(flow_nodes)]

        node_ids = {n.id for n in flow_nodes}
        edges = []
        for edge in collect_edges(structure):
            if edge.from_node not in node_ids or edge.to_node not in node_ids:
                logger.warning(
                    f"Dropping edge {edge.id} of flow {structure.id}: "
                    f"endpoint {edge.from_node} -> {edge.to_node} is not in the flow"
                )
                continue
            edges.append(
                CanvasEdge(
                    id=edge.id,
                    source=edge.from_node,
                    target=edge.to_node,
                    label=edge.condition,
                )
            )

        return FlowGraph(flow_id=structure.id, nodes=nodes, edges=edges)

    def _canvas_node(self, flow_node: FlowNode, index: int) -> CanvasNode:
        selected = flow_node.selected_subnode
        return CanvasNode(
            id=flow_node.id,
            type=classify_node_type(flow_node.node.name, flow_node.node.node_type),
            position=grid_position(index),
            data={
                "label": flow_node.node.name,
                "node_id": flow_node.node.id,
                "order": flow_node.order,
                "selected_subnode": selected.model_dump() if selected else None,
                "subnodes": [s.model_dump() for s in flow_node.node.subnodes],
            },
        )


def assemble_graph(structure: FlowStructure) -> FlowGraph:
    """Assemble a flow structure with the default assembler."""
    return GraphAssembler().assemble(structure)
