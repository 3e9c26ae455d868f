"""Pydantic models for the assembled flow canvas."""

from typing import Any

from pydantic import BaseModel


class Position(BaseModel):
    x: int
    y: int


class CanvasNode(BaseModel):
    """A flow node placed on the canvas."""

    id: str
    type: str
    position: Position
    data: dict[str, Any] = {}


class CanvasEdge(BaseModel):
    """A directed connection drawn on the canvas."""

    id: str
    source: str
    target: str
    label: str | None = None


class FlowGraph(BaseModel):
    """Canvas-ready nodes and edges of one flow."""

    flow_id: str
    nodes: list[CanvasNode] = []
    edges: list[CanvasEdge] = []
