"""Node family API client."""

import inspect
import logging
from collections.abc import Awaitable, Callable

from mediation import config
from mediation.client.base import ApiClient, ApiResult, ConflictError, results_of
from mediation.client.mocks import mock_deployed_nodes
from mediation.models import (
    ActiveNode,
    CloneRequest,
    NodeFamily,
    NodeFamilyCreate,
    NodeSummary,
    NodeVersion,
    NodeVersionCreate,
    NodeVersionUpdate,
    SubnodeOption,
)

logger = logging.getLogger(__name__)

# Called with the currently active node; returns True to replace it
ConfirmReplace = Callable[[ActiveNode], bool | Awaitable[bool]]


def activation_warning(active: ActiveNode) -> str:
    """Confirmation text shown before replacing the active node."""
    return (
        f'Node "{active.name}" is currently active. Activating this node will deactivate '
        f'"{active.name}". Do you want to proceed?'
    )


def palette_entry(family: NodeFamily) -> NodeSummary:
    """Reduce a family to what the flow editor palette shows.

    Subnodes come from the published version, or from the newest version
    when nothing is published. The first subnode is preselected.
    """
    source = next((v for v in family.versions if v.is_published), None)
    if source is None and family.versions:
        source = family.versions[0]
    subnodes = source.subnodes if source else []
    return NodeSummary(
        id=family.id,
        name=family.name,
        node_type=family.node_type,
        subnodes=[
            SubnodeOption(id=s["id"], name=s["name"], is_selected=i == 0)
            for i, s in enumerate(subnodes)
        ],
    )


class NodeClient:
    """Client for node families, their versions and the active node."""

    def __init__(self, api: ApiClient):
        self.api = api

    # ==================== Reads ====================

    async def list_families(self) -> ApiResult[list[NodeFamily]]:
        return await self.api.read(
            "node-families/",
            lambda body: [NodeFamily(**f) for f in results_of(body)],
            fallback=list,
        )

    async def list_deployed(self) -> ApiResult[list[NodeSummary]]:
        """Families available to the flow editor, with their subnodes."""
        return await self.api.read(
            "node-families/",
            lambda body: [palette_entry(NodeFamily(**f)) for f in results_of(body)],
            fallback=mock_deployed_nodes,
        )

    async def get_family(self, family_id: str) -> ApiResult[NodeFamily]:
        return await self.api.read(f"node-families/{family_id}/", lambda body: NodeFamily(**body))

    async def get_active(self) -> ApiResult[ActiveNode | None]:
        return await self.api.read(
            "node-families/active/",
            lambda body: ActiveNode(**body) if body else None,
        )

    async def list_versions(self, family_id: str) -> ApiResult[list[NodeVersion]]:
        return await self.api.read(
            f"node-families/{family_id}/versions/",
            lambda body: [NodeVersion(**v) for v in results_of(body)],
        )

    async def get_version(self, family_id: str, version: int) -> ApiResult[NodeVersion]:
        return await self.api.read(
            f"node-families/{family_id}/versions/{version}/",
            lambda body: NodeVersion(**body),
        )

    async def get_script(self, family_id: str, version: int) -> str:
        return await self.api.get(f"node-families/{family_id}/versions/{version}/script/")

    # ==================== Writes ====================

    async def create_node(
        self,
        name: str,
        description: str,
        script: str,
        node_type: str | None = None,
    ) -> NodeFamily:
        """Create a family with an initial version carrying ``script``."""
        if not name.strip():
            raise ValueError("Node name is required")
        if not description.strip():
            raise ValueError("Description is required")
        if not script:
            raise ValueError("Script file is required")

        data = NodeFamilyCreate(
            name=name.strip(),
            description=description.strip(),
            node_type=node_type,
            created_by=config.OPERATOR,
        )
        family = NodeFamily(**await self.api.post("node-families/", json=data.model_dump()))
        version = await self.create_version(family.id, changelog="initial version")
        await self.upload_script(family.id, version.version, script)
        logger.info(f"Created node '{family.name}' with script on version {version.version}")

        result = await self.get_family(family.id)
        return result.data

    async def create_version(self, family_id: str, changelog: str = "", parameters: list[str] | None = None) -> NodeVersion:
        data = NodeVersionCreate(changelog=changelog, parameters=parameters or [])
        body = await self.api.post(f"node-families/{family_id}/versions/", json=data.model_dump())
        return NodeVersion(**body)

    async def new_version(self, family_id: str, from_version: int, changelog: str | None = None) -> NodeVersion:
        """Copy ``from_version`` into a new draft."""
        payload = {"changelog": changelog} if changelog else {}
        body = await self.api.post(
            f"node-families/{family_id}/versions/{from_version}/new-version/", json=payload
        )
        return NodeVersion(**body)

    async def update_version(self, family_id: str, version: int, update: NodeVersionUpdate) -> NodeVersion:
        body = await self.api.patch(
            f"node-families/{family_id}/versions/{version}/",
            json=update.model_dump(exclude_none=True),
        )
        return NodeVersion(**body)

    async def delete_version(self, family_id: str, version: int) -> None:
        await self.api.delete(f"node-families/{family_id}/versions/{version}/")

    async def upload_script(self, family_id: str, version: int, content: str) -> NodeVersion:
        body = await self.api.put(
            f"node-families/{family_id}/versions/{version}/script/", json={"content": content}
        )
        return NodeVersion(**body)

    async def deploy_version(
        self,
        family_id: str,
        version: int,
        confirm: ConfirmReplace | None = None,
    ) -> NodeFamily | None:
        """Publish a version and make its family the active node.

        When another family is active the service refuses; ``confirm`` is
        then called with that node and the deploy is retried with
        ``replace_active`` only if it returns True.

        Returns:
            The updated family, or None if the operator declined

        Raises:
            ConflictError: Another family is active and no ``confirm`` was given
        """
        path = f"node-families/{family_id}/versions/{version}/deploy/"
        try:
            body = await self.api.post(path, json={"replace_active": False})
        except ConflictError as e:
            if confirm is None or e.active_node is None:
                raise
            active = ActiveNode(**e.active_node)
            answer = confirm(active)
            if inspect.isawaitable(answer):
                answer = await answer
            if not answer:
                logger.info(f"Deploy of {family_id} v{version} cancelled; '{active.name}' stays active")
                return None
            body = await self.api.post(path, json={"replace_active": True})
        return NodeFamily(**body)

    async def undeploy_version(self, family_id: str, version: int) -> NodeFamily:
        body = await self.api.post(f"node-families/{family_id}/versions/{version}/undeploy/")
        return NodeFamily(**body)

    async def clone_family(self, family_id: str, name: str | None = None) -> NodeFamily:
        request = CloneRequest(name=name, created_by=config.OPERATOR)
        body = await self.api.post(
            f"node-families/{family_id}/clone/", json=request.model_dump(exclude_none=True)
        )
        return NodeFamily(**body)

    async def delete_family(self, family_id: str) -> None:
        await self.api.delete(f"node-families/{family_id}/")
