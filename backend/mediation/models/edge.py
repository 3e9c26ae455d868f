"""Pydantic models for Edge instances."""

from pydantic import BaseModel


class EdgeCreate(BaseModel):
    """Request model for connecting two flow nodes."""

    flow_id: str
    from_node: str
    to_node: str
    condition: str | None = None


class Edge(BaseModel):
    """A directed connection between two flow nodes of the same flow."""

    id: str
    flow_id: str
    from_node: str
    to_node: str
    condition: str | None = None
    created_at: str
