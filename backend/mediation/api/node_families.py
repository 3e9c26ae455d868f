"""Node family API routes."""

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from mediation.db import node_store
from mediation.models import (
    ActionResponse,
    ActiveNode,
    CloneRequest,
    DeployNodeVersionRequest,
    NewNodeVersionRequest,
    NodeFamily,
    NodeFamilyCreate,
    NodeVersion,
    NodeVersionCreate,
    NodeVersionUpdate,
    ScriptContent,
)

router = APIRouter(prefix="/node-families", tags=["node-families"])


# ==================== Families ====================


@router.get("/")
async def list_families() -> list[NodeFamily]:
    """List all node families with their versions."""
    return await node_store.list_families()


@router.post("/", status_code=201)
async def create_family(data: NodeFamilyCreate) -> NodeFamily:
    return await node_store.create_family(data)


# Declared before /{family_id}/ so "active" is not taken for an id
@router.get("/active/")
async def get_active_node() -> ActiveNode | None:
    """Get the globally active node family, or null when none is active."""
    return await node_store.get_active_node()


@router.get("/{family_id}/")
async def get_family(family_id: str) -> NodeFamily:
    family = await node_store.get_family(family_id)
    if family is None:
        raise HTTPException(status_code=404, detail="Node family not found")
    return family


@router.delete("/{family_id}/")
async def delete_family(family_id: str) -> ActionResponse:
    """Delete a family that is not published and not used by any flow."""
    deleted = await node_store.delete_family(family_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Node family not found")
    return ActionResponse(status="deleted", message="Node family deleted")


@router.post("/{family_id}/clone/", status_code=201)
async def clone_family(family_id: str, request: CloneRequest | None = None) -> NodeFamily:
    family = await node_store.clone_family(family_id, request or CloneRequest())
    if family is None:
        raise HTTPException(status_code=404, detail="Node family not found")
    return family


# ==================== Versions ====================


@router.get("/{family_id}/versions/")
async def list_versions(family_id: str) -> list[NodeVersion]:
    """List a family's versions, newest first."""
    if await node_store.get_family(family_id) is None:
        raise HTTPException(status_code=404, detail="Node family not found")
    return await node_store.list_versions(family_id)


@router.post("/{family_id}/versions/", status_code=201)
async def create_version(family_id: str, data: NodeVersionCreate | None = None) -> NodeVersion:
    """Add an empty draft version."""
    version = await node_store.create_version(family_id, data or NodeVersionCreate())
    if version is None:
        raise HTTPException(status_code=404, detail="Node family not found")
    return version


@router.get("/{family_id}/versions/{version}/")
async def get_version(family_id: str, version: int) -> NodeVersion:
    result = await node_store.get_version(family_id, version)
    if result is None:
        raise HTTPException(status_code=404, detail="Node version not found")
    return result


@router.patch("/{family_id}/versions/{version}/")
async def update_version(family_id: str, version: int, update: NodeVersionUpdate) -> NodeVersion:
    """Edit a draft version. Published versions are read-only."""
    result = await node_store.update_version(family_id, version, update)
    if result is None:
        raise HTTPException(status_code=404, detail="Node version not found")
    return result


@router.delete("/{family_id}/versions/{version}/")
async def delete_version(family_id: str, version: int) -> ActionResponse:
    deleted = await node_store.delete_version(family_id, version)
    if not deleted:
        raise HTTPException(status_code=404, detail="Node version not found")
    return ActionResponse(status="deleted", message=f"Node version {version} deleted")


@router.post("/{family_id}/versions/{version}/new-version/", status_code=201)
async def create_new_version(
    family_id: str, version: int, request: NewNodeVersionRequest | None = None
) -> NodeVersion:
    """Copy a version into a new draft."""
    changelog = request.changelog if request else None
    result = await node_store.create_new_version(family_id, version, changelog)
    if result is None:
        raise HTTPException(status_code=404, detail="Node version not found")
    return result


@router.post("/{family_id}/versions/{version}/deploy/")
async def deploy_version(
    family_id: str, version: int, request: DeployNodeVersionRequest | None = None
) -> NodeFamily:
    """Publish a version and make its family the active node.

    Returns 409 with the currently active node when another family is active
    and ``replace_active`` was not set.
    """
    replace_active = request.replace_active if request else False
    family = await node_store.deploy_version(family_id, version, replace_active=replace_active)
    if family is None:
        raise HTTPException(status_code=404, detail="Node version not found")
    return family


@router.post("/{family_id}/versions/{version}/undeploy/")
async def undeploy_version(family_id: str, version: int) -> NodeFamily:
    family = await node_store.undeploy_version(family_id, version)
    if family is None:
        raise HTTPException(status_code=404, detail="Node version not found")
    return family


# ==================== Scripts ====================


@router.get("/{family_id}/versions/{version}/script/", response_class=PlainTextResponse)
async def get_script(family_id: str, version: int) -> str:
    script = await node_store.get_script(family_id, version)
    if script is None:
        raise HTTPException(status_code=404, detail="Script not found")
    return script


@router.put("/{family_id}/versions/{version}/script/")
async def upload_script(family_id: str, version: int, script: ScriptContent) -> NodeVersion:
    """Attach script text to a draft version."""
    result = await node_store.set_script(family_id, version, script.content)
    if result is None:
        raise HTTPException(status_code=404, detail="Node version not found")
    return result
