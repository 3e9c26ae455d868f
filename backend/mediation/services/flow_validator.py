"""Pre-deployment validation of a flow's structure.

Checks the graph a flow would run with and reports every problem found as a
human-readable message, so the operator sees the full list at once.

Example:
    result = FlowValidator().validate(structure)
    if not result.valid:
        for message in result.errors:
            print(message)
"""

from mediation.models import FlowNode, FlowStructure, ValidationResult


def _label(flow_node: FlowNode) -> str:
    return f"'{flow_node.node.name}' (position {flow_node.order})"


class FlowValidator:
    """Evaluates the structural rules a flow must satisfy to be deployed."""

    def validate(self, structure: FlowStructure) -> ValidationResult:
        """Validate a flow structure.

        Args:
            structure: The flow with its placed nodes and edges

        Returns:
            ValidationResult with valid=True, or the list of error messages
        """
        errors: list[str] = []

        if not structure.flow_nodes:
            errors.append("Flow has no nodes")

        errors.extend(self._check_subnodes(structure.flow_nodes))
        errors.extend(self._check_edges(structure))

        return ValidationResult(valid=len(errors) == 0, errors=errors)

    def _check_subnodes(self, flow_nodes: list[FlowNode]) -> list[str]:
        """Every placement needs a subnode of its own node family."""
        errors = []
        for flow_node in flow_nodes:
            if flow_node.selected_subnode is None:
                errors.append(f"Node {_label(flow_node)} has no subnode selected")
                continue

            family_subnodes = {s.id for s in flow_node.node.subnodes}
            if flow_node.selected_subnode.id not in family_subnodes:
                errors.append(
                    f"Subnode '{flow_node.selected_subnode.name}' selected for node "
                    f"{_label(flow_node)} does not belong to that node"
                )
        return errors

    def _check_edges(self, structure: FlowStructure) -> list[str]:
        """Edges must join two distinct nodes of this flow."""
        errors = []
        node_ids = {n.id for n in structure.flow_nodes}

        for edge in structure.edges:
            if edge.from_node == edge.to_node:
                errors.append(f"Edge {edge.id} connects a node to itself")
                continue
            for endpoint in (edge.from_node, edge.to_node):
                if endpoint not in node_ids:
                    errors.append(
                        f"Edge {edge.id} references node {endpoint} outside this flow"
                    )
        return errors
