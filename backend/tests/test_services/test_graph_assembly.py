"""Tests for assembling a flow structure into a canvas graph."""

import pytest

from mediation.models import (
    Edge,
    FlowNode,
    FlowStructure,
    NodeSummary,
    SelectedSubnode,
    SubnodeOption,
)
from mediation.services.graph_assembly import (
    GraphAssembler,
    classify_node_type,
    collect_edges,
    grid_position,
)

NOW = "2024-01-01T00:00:00+00:00"


def make_edge(edge_id: str, source: str, target: str, condition: str | None = None) -> Edge:
    return Edge(id=edge_id, flow_id="flow-1", from_node=source, to_node=target, condition=condition, created_at=NOW)


def make_flow_node(node_id: str, name: str, order: int = 1, outgoing: list[Edge] | None = None) -> FlowNode:
    return FlowNode(
        id=node_id,
        flow_id="flow-1",
        order=order,
        node=NodeSummary(
            id=f"family-{node_id}",
            name=name,
            subnodes=[SubnodeOption(id=f"sub-{node_id}", name="Default", is_selected=True)],
        ),
        selected_subnode=SelectedSubnode(id=f"sub-{node_id}", name="Default"),
        outgoing_edges=outgoing or [],
    )


def make_structure(flow_nodes: list[FlowNode], edges: list[Edge]) -> FlowStructure:
    return FlowStructure(
        id="flow-1",
        name="Voice",
        created_at=NOW,
        created_by="user",
        updated_at=NOW,
        flow_nodes=flow_nodes,
        edges=edges,
    )


class TestClassifyNodeType:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("SFTP Collector Node", "sftp_collector"),
            ("FDC Reader", "fdc"),
            ("ASN.1 Decoder Node", "asn1_decoder"),
            ("Validation BLN Node", "validation_bln"),
            ("Enrichment BLN", "enrichment_bln"),
            ("CSV Encoder", "encoder"),
            ("Diameter Interface", "diameter_interface"),
            ("Raw Backup", "raw_backup"),
            ("Rating Engine", "generic"),
        ],
    )
    def test_name_keywords(self, name: str, expected: str):
        assert classify_node_type(name) == expected

    def test_first_matching_keyword_wins(self):
        # "decoder" is checked before "ascii"
        assert classify_node_type("ASCII Decoder") == "asn1_decoder"
        assert classify_node_type("ASCII Reader") == "ascii_decoder"

    def test_explicit_type_wins(self):
        assert classify_node_type("SFTP Collector", "custom") == "custom"


class TestGridPosition:
    def test_four_columns(self):
        assert grid_position(0).model_dump() == {"x": 100, "y": 100}
        assert grid_position(3).model_dump() == {"x": 1000, "y": 100}
        assert grid_position(4).model_dump() == {"x": 100, "y": 300}
        assert grid_position(9).model_dump() == {"x": 400, "y": 500}


class TestGraphAssembler:
    def test_edges_listed_twice_are_drawn_once(self):
        edge = make_edge("e1", "n1", "n2")
        structure = make_structure(
            [make_flow_node("n1", "Collector", 1, outgoing=[edge]), make_flow_node("n2", "Decoder", 2)],
            [edge],
        )

        graph = GraphAssembler().assemble(structure)

        assert [e.id for e in graph.edges] == ["e1"]
        assert (graph.edges[0].source, graph.edges[0].target) == ("n1", "n2")

    def test_same_pair_with_different_ids_is_deduplicated(self):
        edges = collect_edges(
            make_structure(
                [make_flow_node("n1", "A"), make_flow_node("n2", "B")],
                [make_edge("e1", "n1", "n2"), make_edge("e2", "n1", "n2"), make_edge("e3", "n2", "n1")],
            )
        )
        assert [e.id for e in edges] == ["e1", "e3"]

    def test_repeated_nodes_are_placed_once(self):
        node = make_flow_node("n1", "Collector")
        graph = GraphAssembler().assemble(make_structure([node, node], []))
        assert [n.id for n in graph.nodes] == ["n1"]

    def test_dangling_edges_are_dropped(self, caplog):
        structure = make_structure([make_flow_node("n1", "Collector")], [make_edge("e1", "n1", "ghost")])

        with caplog.at_level("WARNING"):
            graph = GraphAssembler().assemble(structure)

        assert graph.edges == []
        assert "Dropping edge e1" in caplog.text

    def test_canvas_node_data(self):
        structure = make_structure(
            [make_flow_node("n1", "SFTP Collector", 1), make_flow_node("n2", "Validation BLN", 2)],
            [make_edge("e1", "n1", "n2", condition="valid")],
        )

        graph = GraphAssembler().assemble(structure)

        assert graph.flow_id == "flow-1"
        first, second = graph.nodes
        assert first.type == "sftp_collector"
        assert second.type == "validation_bln"
        assert second.position.model_dump() == {"x": 400, "y": 100}
        assert first.data["label"] == "SFTP Collector"
        assert first.data["node_id"] == "family-n1"
        assert first.data["order"] == 1
        assert first.data["selected_subnode"]["id"] == "sub-n1"
        assert first.data["subnodes"] == [{"id": "sub-n1", "name": "Default", "is_selected": True}]
        assert graph.edges[0].label == "valid"

    def test_empty_structure(self):
        graph = GraphAssembler().assemble(make_structure([], []))
        assert graph.nodes == []
        assert graph.edges == []
