"""Flow API routes."""

import logging

from fastapi import APIRouter, HTTPException

from mediation.db import flow_store
from mediation.models import (
    ActivateVersionRequest,
    ActionResponse,
    CloneRequest,
    Flow,
    FlowCreate,
    FlowStructure,
    FlowUpdate,
    FlowVersion,
    FlowVersionCreate,
    FlowVersionUpdate,
    ValidationResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["flows"])


async def _require_flow(flow_id: str) -> Flow:
    flow = await flow_store.get_flow(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


# ==================== Flow CRUD ====================


@router.get("/")
async def list_flows() -> list[Flow]:
    """List all flows."""
    return await flow_store.list_flows()


@router.post("/", status_code=201)
async def create_flow(data: FlowCreate) -> Flow:
    """Create a flow with an empty version 1."""
    return await flow_store.create_flow(data)


@router.get("/{flow_id}/")
async def get_flow(flow_id: str) -> Flow:
    return await _require_flow(flow_id)


@router.put("/{flow_id}/")
async def update_flow(flow_id: str, update: FlowUpdate) -> Flow:
    """Update a flow's name or description. Refused while deployed."""
    flow = await flow_store.update_flow(flow_id, update)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


@router.delete("/{flow_id}/")
async def delete_flow(flow_id: str) -> ActionResponse:
    deleted = await flow_store.delete_flow(flow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flow not found")
    return ActionResponse(status="deleted", message="Flow deleted")


@router.get("/{flow_id}/structure/")
async def get_structure(flow_id: str) -> FlowStructure:
    """Get a flow with its flow nodes and edges."""
    structure = await flow_store.get_structure(flow_id)
    if structure is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return structure


@router.post("/{flow_id}/clone/", status_code=201)
async def clone_flow(flow_id: str, request: CloneRequest | None = None) -> Flow:
    """Copy a flow's current structure into a new draft flow."""
    flow = await flow_store.clone_flow(flow_id, request or CloneRequest())
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


# ==================== Lifecycle ====================


@router.post("/{flow_id}/validate/")
async def validate_flow(flow_id: str) -> ValidationResult:
    """Validate a flow's structure without deploying it."""
    result = await flow_store.validate(flow_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return result


@router.post("/{flow_id}/deploy/")
async def deploy_flow(flow_id: str) -> Flow:
    """Validate and deploy a flow."""
    flow = await flow_store.deploy(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


@router.post("/{flow_id}/undeploy/")
async def undeploy_flow(flow_id: str) -> Flow:
    """Undeploy a flow, stopping it first if it is running."""
    flow = await flow_store.undeploy(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


@router.post("/{flow_id}/start/")
async def start_flow(flow_id: str) -> Flow:
    flow = await flow_store.start(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


@router.post("/{flow_id}/stop/")
async def stop_flow(flow_id: str) -> Flow:
    flow = await flow_store.stop(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


# ==================== Versions ====================


@router.get("/{flow_id}/versions/")
async def list_versions(flow_id: str) -> list[FlowVersion]:
    """List a flow's versions, newest first."""
    await _require_flow(flow_id)
    return await flow_store.list_versions(flow_id)


@router.post("/{flow_id}/versions/", status_code=201)
async def create_version(flow_id: str, data: FlowVersionCreate | None = None) -> FlowVersion:
    """Snapshot the live structure as a new inactive version."""
    version = await flow_store.create_version(flow_id, data or FlowVersionCreate())
    if version is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return version


@router.patch("/{flow_id}/versions/{version}/")
async def update_version(flow_id: str, version: int, update: FlowVersionUpdate) -> FlowVersion:
    result = await flow_store.update_version(flow_id, version, update)
    if result is None:
        raise HTTPException(status_code=404, detail="Flow version not found")
    return result


@router.post("/{flow_id}/activate-version/")
async def activate_version(flow_id: str, request: ActivateVersionRequest) -> Flow:
    """Make a version active and restore its structure."""
    flow = await flow_store.activate_version(flow_id, request.version)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow version not found")
    logger.info(f"Flow version {request.version} activated for flow {flow_id}")
    return flow
