"""Subnode API client."""

from typing import Any

from mediation.client.base import ApiClient, ApiResult, results_of
from mediation.models import (
    CloneRequest,
    ParameterValue,
    Subnode,
    SubnodeCreate,
    SubnodeImport,
    SubnodeVersion,
    SubnodeVersionUpdate,
)


class SubnodeClient:
    """Client for subnodes and their versions."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def list_subnodes(self, node_family: str | None = None) -> ApiResult[list[Subnode]]:
        params = {"node_family": node_family} if node_family else None
        return await self.api.read(
            "subnodes/",
            lambda body: [Subnode(**s) for s in results_of(body)],
            fallback=list,
            params=params,
        )

    async def get_subnode(self, subnode_id: str) -> ApiResult[Subnode]:
        return await self.api.read(f"subnodes/{subnode_id}/", lambda body: Subnode(**body))

    async def create_subnode(
        self,
        name: str,
        node_family: str,
        description: str = "",
        parameter_values: list[ParameterValue] | None = None,
    ) -> Subnode:
        if not name.strip():
            raise ValueError("Subnode name is required")
        data = SubnodeCreate(
            name=name.strip(),
            description=description,
            node_family=node_family,
            parameter_values=parameter_values or [],
        )
        body = await self.api.post("subnodes/", json=data.model_dump())
        return Subnode(**body)

    async def import_subnode(self, document: dict[str, Any]) -> Subnode:
        """Create a subnode from an exported document."""
        payload = SubnodeImport(**document)
        body = await self.api.post("subnodes/import/", json=payload.model_dump())
        return Subnode(**body)

    async def clone_subnode(self, subnode_id: str, name: str | None = None) -> Subnode:
        body = await self.api.post(
            f"subnodes/{subnode_id}/clone/", json=CloneRequest(name=name).model_dump(exclude_none=True)
        )
        return Subnode(**body)

    async def delete_subnode(self, subnode_id: str) -> None:
        await self.api.delete(f"subnodes/{subnode_id}/")

    async def create_editable_version(self, subnode_id: str, version_comment: str = "") -> Subnode:
        body = await self.api.post(
            f"subnodes/{subnode_id}/create-editable-version/",
            json={"version_comment": version_comment},
        )
        return Subnode(**body)

    async def update_version(
        self, subnode_id: str, version: int, update: SubnodeVersionUpdate
    ) -> SubnodeVersion:
        body = await self.api.patch(
            f"subnodes/{subnode_id}/versions/{version}/",
            json=update.model_dump(exclude_none=True),
        )
        return SubnodeVersion(**body)

    async def activate_version(self, subnode_id: str, version: int) -> Subnode:
        body = await self.api.post(f"subnodes/{subnode_id}/versions/{version}/activate/")
        return Subnode(**body)

    async def undeploy_version(self, subnode_id: str, version: int) -> Subnode:
        body = await self.api.post(f"subnodes/{subnode_id}/versions/{version}/undeploy/")
        return Subnode(**body)
