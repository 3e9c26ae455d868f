"""Flow API client."""

import logging
from typing import Any

from mediation import config
from mediation.client.base import ApiClient, ApiResult, HttpError, ValidationFailed, results_of
from mediation.client.mocks import mock_flow, mock_flow_versions, mock_structure
from mediation.models import (
    ActivateVersionRequest,
    CloneRequest,
    Edge,
    EdgeCreate,
    Flow,
    FlowCreate,
    FlowGraph,
    FlowNode,
    FlowNodeCreate,
    FlowStructure,
    FlowUpdate,
    FlowVersion,
    FlowVersionCreate,
    ValidationResult,
)
from mediation.services.graph_assembly import assemble_graph

logger = logging.getLogger(__name__)


class FlowClient:
    """Client for flows, their versions and their structure."""

    def __init__(self, api: ApiClient):
        self.api = api

    # ==================== Reads ====================

    async def list_flows(self) -> ApiResult[list[Flow]]:
        return await self.api.read(
            "flows/",
            lambda body: [Flow(**f) for f in results_of(body)],
            fallback=list,
        )

    async def get_flow(self, flow_id: str) -> ApiResult[Flow]:
        return await self.api.read(
            f"flows/{flow_id}/",
            lambda body: Flow(**body),
            fallback=lambda: mock_flow(flow_id),
        )

    async def get_structure(self, flow_id: str) -> ApiResult[FlowStructure]:
        return await self.api.read(
            f"flows/{flow_id}/structure/",
            lambda body: FlowStructure(**body),
            fallback=lambda: mock_structure(flow_id),
        )

    async def get_graph(self, flow_id: str) -> ApiResult[FlowGraph]:
        """Fetch a flow's structure and assemble it for the canvas."""
        structure = await self.get_structure(flow_id)
        return ApiResult(
            data=assemble_graph(structure.data),
            source=structure.source,
            error=structure.error,
        )

    async def list_versions(self, flow_id: str) -> ApiResult[list[FlowVersion]]:
        return await self.api.read(
            f"flows/{flow_id}/versions/",
            lambda body: [FlowVersion(**v) for v in results_of(body)],
            fallback=lambda: mock_flow_versions(flow_id),
        )

    async def list_edges(self, flow_id: str) -> ApiResult[list[Edge]]:
        return await self.api.read(
            "edges/",
            lambda body: [Edge(**e) for e in results_of(body)],
            fallback=list,
            params={"flow_id": flow_id},
        )

    # ==================== Writes ====================

    async def create_flow(self, name: str, description: str = "", created_by: str | None = None) -> Flow:
        if not name.strip():
            raise ValueError("Please enter a flow name")
        data = FlowCreate(
            name=name.strip(),
            description=description.strip(),
            created_by=created_by or config.OPERATOR,
        )
        body = await self.api.post("flows/", json=data.model_dump())
        return Flow(**body)

    async def update_flow(self, flow_id: str, update: FlowUpdate) -> Flow:
        body = await self.api.put(f"flows/{flow_id}/", json=update.model_dump(exclude_none=True))
        return Flow(**body)

    async def delete_flow(self, flow_id: str) -> None:
        await self.api.delete(f"flows/{flow_id}/")

    async def clone_flow(
        self, flow_id: str, name: str | None = None, description: str | None = None
    ) -> Flow:
        request = CloneRequest(name=name, description=description, created_by=config.OPERATOR)
        body = await self.api.post(f"flows/{flow_id}/clone/", json=request.model_dump(exclude_none=True))
        return Flow(**body)

    async def validate(self, flow_id: str) -> ValidationResult:
        """Validate a flow.

        Both a 200 ``{valid, errors}`` answer and a 400 ``{errors}`` answer
        are turned into a ValidationResult.
        """
        try:
            body = await self.api.post(f"flows/{flow_id}/validate/")
        except HttpError as e:
            if e.status_code != 400:
                raise
            errors = e.body.get("errors") if isinstance(e.body, dict) else None
            return ValidationResult(valid=False, errors=errors or ["Flow validation failed"])
        if not isinstance(body, dict):
            return ValidationResult(valid=True)
        return ValidationResult(valid=body.get("valid", True), errors=body.get("errors") or [])

    async def deploy(self, flow_id: str) -> Flow:
        """Validate and deploy a flow.

        Raises:
            ValidationFailed: The flow is invalid; ``errors`` holds the messages unmodified
        """
        result = await self.validate(flow_id)
        if not result.valid:
            logger.info(f"Flow {flow_id} failed validation: {result.errors}")
            raise ValidationFailed("Flow validation failed", 400, result.errors, {"errors": result.errors})
        return await self._action(flow_id, "deploy")

    async def undeploy(self, flow_id: str) -> Flow:
        return await self._action(flow_id, "undeploy")

    async def start(self, flow_id: str) -> Flow:
        return await self._action(flow_id, "start")

    async def stop(self, flow_id: str) -> Flow:
        return await self._action(flow_id, "stop")

    async def create_version(self, flow_id: str, description: str) -> FlowVersion:
        if not description.strip():
            raise ValueError("Please enter a version description")
        data = FlowVersionCreate(description=description.strip(), created_by=config.OPERATOR)
        body = await self.api.post(f"flows/{flow_id}/versions/", json=data.model_dump())
        return FlowVersion(**body)

    async def update_version(self, flow_id: str, version: int, description: str) -> FlowVersion:
        body = await self.api.patch(f"flows/{flow_id}/versions/{version}/", json={"description": description})
        return FlowVersion(**body)

    async def activate_version(self, flow_id: str, version: int) -> Flow:
        body = await self.api.post(
            f"flows/{flow_id}/activate-version/",
            json=ActivateVersionRequest(version=version).model_dump(),
        )
        return Flow(**body)

    # ==================== Structure ====================

    async def add_node(
        self,
        flow_id: str,
        node_id: str,
        order: int | None = None,
        from_node: str | None = None,
        selected_subnode: str | None = None,
    ) -> FlowNode:
        data = FlowNodeCreate(
            flow_id=flow_id,
            node_id=node_id,
            order=order,
            from_node=from_node,
            selected_subnode=selected_subnode,
        )
        body = await self.api.post("flownodes/", json=data.model_dump())
        return FlowNode(**body)

    async def update_node(self, flow_node_id: str, **changes: Any) -> FlowNode:
        """Patch a flow node; pass ``from_node=None`` to clear the predecessor."""
        body = await self.api.patch(f"flownodes/{flow_node_id}/", json=changes)
        return FlowNode(**body)

    async def select_subnode(self, flow_node_id: str, subnode_id: str) -> FlowNode:
        if not subnode_id:
            raise ValueError("Please choose a subnode")
        return await self.update_node(flow_node_id, selected_subnode=subnode_id)

    async def remove_node(self, flow_node_id: str) -> None:
        await self.api.delete(f"flownodes/{flow_node_id}/")

    async def connect(
        self, flow_id: str, from_node: str, to_node: str, condition: str | None = None
    ) -> Edge:
        data = EdgeCreate(flow_id=flow_id, from_node=from_node, to_node=to_node, condition=condition)
        body = await self.api.post("edges/", json=data.model_dump())
        return Edge(**body)

    async def disconnect(self, edge_id: str) -> None:
        await self.api.delete(f"edges/{edge_id}/")

    async def _action(self, flow_id: str, action: str) -> Flow:
        body = await self.api.post(f"flows/{flow_id}/{action}/")
        return Flow(**body)
