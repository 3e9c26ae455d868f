"""Edge API routes."""

from fastapi import APIRouter, HTTPException, Query

from mediation.db import flow_store
from mediation.models import ActionResponse, Edge, EdgeCreate

router = APIRouter(prefix="/edges", tags=["edges"])


@router.get("/")
async def list_edges(flow_id: str = Query(...)) -> list[Edge]:
    """List the edges of a flow."""
    if await flow_store.get_flow(flow_id) is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return await flow_store.list_edges(flow_id)


@router.post("/", status_code=201)
async def create_edge(data: EdgeCreate) -> Edge:
    """Connect two flow nodes. An existing connection is returned as is."""
    edge = await flow_store.create_edge(data)
    if edge is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return edge


@router.delete("/{edge_id}/")
async def delete_edge(edge_id: str) -> ActionResponse:
    deleted = await flow_store.delete_edge(edge_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Edge not found")
    return ActionResponse(status="deleted", message="Edge removed")
