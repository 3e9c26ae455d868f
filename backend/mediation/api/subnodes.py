"""Subnode API routes."""

from fastapi import APIRouter, HTTPException

from mediation.db import subnode_store
from mediation.models import (
    ActionResponse,
    CloneRequest,
    EditableVersionRequest,
    Subnode,
    SubnodeCreate,
    SubnodeImport,
    SubnodeUpdate,
    SubnodeVersion,
    SubnodeVersionUpdate,
)

router = APIRouter(prefix="/subnodes", tags=["subnodes"])


@router.get("/")
async def list_subnodes(node_family: str | None = None) -> list[Subnode]:
    """List subnodes, optionally restricted to one node family."""
    return await subnode_store.list_subnodes(node_family)


@router.post("/", status_code=201)
async def create_subnode(data: SubnodeCreate) -> Subnode:
    """Create a subnode with an editable version 1."""
    return await subnode_store.create_subnode(data)


@router.post("/import/", status_code=201)
async def import_subnode(payload: SubnodeImport) -> Subnode:
    """Create a subnode from an exported JSON document."""
    return await subnode_store.import_subnode(payload)


@router.get("/{subnode_id}/")
async def get_subnode(subnode_id: str) -> Subnode:
    subnode = await subnode_store.get_subnode(subnode_id)
    if subnode is None:
        raise HTTPException(status_code=404, detail="Subnode not found")
    return subnode


@router.put("/{subnode_id}/")
async def update_subnode(subnode_id: str, update: SubnodeUpdate) -> Subnode:
    subnode = await subnode_store.update_subnode(subnode_id, update)
    if subnode is None:
        raise HTTPException(status_code=404, detail="Subnode not found")
    return subnode


@router.delete("/{subnode_id}/")
async def delete_subnode(subnode_id: str) -> ActionResponse:
    deleted = await subnode_store.delete_subnode(subnode_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Subnode not found")
    return ActionResponse(status="deleted", message="Subnode deleted")


@router.post("/{subnode_id}/clone/", status_code=201)
async def clone_subnode(subnode_id: str, request: CloneRequest | None = None) -> Subnode:
    subnode = await subnode_store.clone_subnode(subnode_id, request or CloneRequest())
    if subnode is None:
        raise HTTPException(status_code=404, detail="Subnode not found")
    return subnode


@router.post("/{subnode_id}/create-editable-version/", status_code=201)
async def create_editable_version(
    subnode_id: str, request: EditableVersionRequest | None = None
) -> Subnode:
    """Open a new editable version seeded from the active one."""
    comment = request.version_comment if request else ""
    subnode = await subnode_store.create_editable_version(subnode_id, comment)
    if subnode is None:
        raise HTTPException(status_code=404, detail="Subnode not found")
    return subnode


@router.patch("/{subnode_id}/versions/{version}/")
async def update_version(subnode_id: str, version: int, update: SubnodeVersionUpdate) -> SubnodeVersion:
    result = await subnode_store.update_version(subnode_id, version, update)
    if result is None:
        raise HTTPException(status_code=404, detail="Subnode version not found")
    return result


@router.post("/{subnode_id}/versions/{version}/activate/")
async def activate_version(subnode_id: str, version: int) -> Subnode:
    subnode = await subnode_store.activate_version(subnode_id, version)
    if subnode is None:
        raise HTTPException(status_code=404, detail="Subnode version not found")
    return subnode


@router.post("/{subnode_id}/versions/{version}/undeploy/")
async def undeploy_version(subnode_id: str, version: int) -> Subnode:
    subnode = await subnode_store.undeploy_version(subnode_id, version)
    if subnode is None:
        raise HTTPException(status_code=404, detail="Subnode version not found")
    return subnode
