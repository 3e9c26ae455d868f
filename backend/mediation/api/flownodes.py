"""Flow node API routes."""

from fastapi import APIRouter, HTTPException

from mediation.db import flow_store
from mediation.models import ActionResponse, FlowNode, FlowNodeCreate, FlowNodeUpdate

router = APIRouter(prefix="/flownodes", tags=["flownodes"])


@router.post("/", status_code=201)
async def create_flow_node(data: FlowNodeCreate) -> FlowNode:
    """Place a node family in a flow."""
    flow_node = await flow_store.create_flow_node(data)
    if flow_node is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow_node


@router.patch("/{flow_node_id}/")
async def update_flow_node(flow_node_id: str, update: FlowNodeUpdate) -> FlowNode:
    """Patch order, predecessor or selected subnode.

    Only the fields present in the body are applied.
    """
    changes = update.model_dump(include=update.model_fields_set)
    flow_node = await flow_store.update_flow_node(flow_node_id, changes)
    if flow_node is None:
        raise HTTPException(status_code=404, detail="Flow node not found")
    return flow_node


@router.delete("/{flow_node_id}/")
async def delete_flow_node(flow_node_id: str) -> ActionResponse:
    deleted = await flow_store.delete_flow_node(flow_node_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flow node not found")
    return ActionResponse(status="deleted", message="Flow node removed")
