"""Pydantic models for node families and node versions."""

from enum import Enum

from pydantic import BaseModel, Field


class NodeVersionState(str, Enum):
    """Publication state of a node version."""

    DRAFT = "draft"
    PUBLISHED = "published"


class NodeFamilyCreate(BaseModel):
    """Request model for creating a node family."""

    name: str = Field(min_length=1)
    description: str = ""
    node_type: str | None = None
    created_by: str = "user"


class NodeVersionCreate(BaseModel):
    """Request model for adding an empty draft version."""

    changelog: str = ""
    parameters: list[str] = []


class NewNodeVersionRequest(BaseModel):
    """Request to copy an existing version into a new draft."""

    changelog: str | None = None


class NodeVersionUpdate(BaseModel):
    """Request model for editing a draft node version."""

    changelog: str | None = None
    parameters: list[str] | None = None


class DeployNodeVersionRequest(BaseModel):
    """Request to publish a node version.

    ``replace_active`` confirms that the currently active node family, if it
    is a different one, should be deactivated.
    """

    replace_active: bool = False


class ScriptContent(BaseModel):
    """Script text attached to a node version."""

    content: str


class NodeVersion(BaseModel):
    """A version of a node family."""

    id: str
    family_id: str
    version: int
    state: NodeVersionState = NodeVersionState.DRAFT
    changelog: str = ""
    parameters: list[str] = []
    subnodes: list[dict] = []
    script_url: str | None = None
    created_at: str

    @property
    def is_published(self) -> bool:
        return self.state == NodeVersionState.PUBLISHED


class NodeFamily(BaseModel):
    """A reusable processing stage type with its version history."""

    id: str
    name: str
    description: str = ""
    node_type: str | None = None
    is_deployed: bool = False
    published_version: int | None = None
    total_versions: int = 0
    versions: list[NodeVersion] = []
    created_at: str
    created_by: str
    updated_at: str


class ActiveNode(BaseModel):
    """The single node family that is globally active."""

    family_id: str
    name: str
    version: int
    activated_at: str
