"""Pydantic models for flows and their version history."""

from enum import Enum

from pydantic import BaseModel, Field

from mediation.models.edge import Edge
from mediation.models.flow_node import FlowNode


class FlowStatus(str, Enum):
    """Display status of a flow, derived from its deployment flags."""

    DRAFT = "draft"
    DEPLOYED = "deployed"
    RUNNING = "running"


class FlowCreate(BaseModel):
    """Request model for creating a flow."""

    name: str = Field(min_length=1)
    description: str = ""
    created_by: str = "user"


class FlowUpdate(BaseModel):
    """Request model for updating a flow's metadata."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    last_updated_by: str | None = None


class CloneRequest(BaseModel):
    """Request model for cloning an entity under a new name."""

    name: str | None = None
    description: str | None = None
    created_by: str = "user"


class Flow(BaseModel):
    """A configured mediation pipeline."""

    id: str
    name: str
    description: str = ""
    version: int = 1
    is_deployed: bool = False
    is_running: bool = False
    created_at: str
    created_by: str
    updated_at: str
    last_updated_by: str | None = None

    @property
    def status(self) -> FlowStatus:
        if self.is_running:
            return FlowStatus.RUNNING
        if self.is_deployed:
            return FlowStatus.DEPLOYED
        return FlowStatus.DRAFT


class FlowStructure(Flow):
    """A flow together with its placed nodes and their connections."""

    flow_nodes: list[FlowNode] = []
    edges: list[Edge] = []


class FlowVersionCreate(BaseModel):
    """Request model for snapshotting the live structure as a new version."""

    description: str | None = None
    created_by: str = "user"


class FlowVersionUpdate(BaseModel):
    """Request model for editing a version's description."""

    description: str


class FlowVersion(BaseModel):
    """A numbered snapshot of a flow's structure."""

    id: str
    flow_id: str
    version: int
    created_at: str
    created_by: str
    is_active: bool = False
    description: str | None = None


class ActivateVersionRequest(BaseModel):
    """Request to make a flow version the active one."""

    version: int


class ValidationResult(BaseModel):
    """Outcome of validating a flow before deployment."""

    valid: bool
    errors: list[str] = []


class ActionResponse(BaseModel):
    """Generic acknowledgement for lifecycle actions."""

    status: str
    message: str
