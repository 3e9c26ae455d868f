"""Pydantic models for subnodes and their versions."""

from pydantic import BaseModel, Field


class ParameterValue(BaseModel):
    """A value recorded for a parameter key."""

    parameter_key: str
    value: str


class SubnodeCreate(BaseModel):
    """Request model for creating a subnode."""

    name: str = Field(min_length=1)
    description: str = ""
    node_family: str
    parameter_values: list[ParameterValue] = []


class SubnodeUpdate(BaseModel):
    """Request model for updating subnode metadata."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None


class EditableVersionRequest(BaseModel):
    """Request to open a new editable version of a subnode."""

    version_comment: str = ""


class SubnodeVersionUpdate(BaseModel):
    """Request model for editing a draft subnode version."""

    version_comment: str | None = None
    parameter_values: list[ParameterValue] | None = None
    parameter_values_by_nodeversion: dict[str, list[ParameterValue]] | None = None


class SubnodeVersion(BaseModel):
    """A version of a subnode's parameter values."""

    id: str
    subnode_id: str
    version: int
    version_comment: str = ""
    is_deployed: bool = False
    is_editable: bool = True
    parameter_values: list[ParameterValue] = []
    parameter_values_by_nodeversion: dict[str, list[ParameterValue]] = {}
    created_at: str


class Subnode(BaseModel):
    """An implementation variant attachable to a node family."""

    id: str
    name: str
    description: str = ""
    node_family: str
    active_version: int | None = None
    versions: list[SubnodeVersion] = []
    created_at: str
    updated_at: str


class SubnodeVersionData(BaseModel):
    """Version content carried by an exported subnode document."""

    version_comment: str = ""
    parameter_values: list[ParameterValue] = []
    parameter_values_by_nodeversion: dict[str, list[ParameterValue]] = {}


class SubnodeImport(BaseModel):
    """An exported subnode document; ids and timestamps in it are ignored."""

    name: str = Field(min_length=1)
    description: str = ""
    node_family: str
    versions: list[SubnodeVersionData] = []
