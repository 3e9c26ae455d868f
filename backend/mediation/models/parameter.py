"""Pydantic models for configuration parameters."""

import json
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class ParameterDatatype(str, Enum):
    """Supported parameter value types."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    JSON = "json"


def check_value(value: str, datatype: ParameterDatatype) -> None:
    """Raise ValueError if ``value`` cannot be read as ``datatype``."""
    if datatype == ParameterDatatype.INT:
        int(value)
    elif datatype == ParameterDatatype.FLOAT:
        float(value)
    elif datatype == ParameterDatatype.BOOL:
        if value.lower() not in ("true", "false", "1", "0"):
            raise ValueError(f"'{value}' is not a boolean")
    elif datatype == ParameterDatatype.JSON:
        json.loads(value)


class ParameterCreate(BaseModel):
    """Request model for creating a parameter."""

    key: str = Field(min_length=1)
    default_value: str = ""
    datatype: ParameterDatatype = ParameterDatatype.STRING
    required: bool = False
    description: str = ""
    node_version: str | None = None

    @model_validator(mode="after")
    def default_matches_datatype(self) -> "ParameterCreate":
        if self.default_value != "":
            check_value(self.default_value, self.datatype)
        return self


class ParameterUpdate(BaseModel):
    """Request model for updating a parameter."""

    default_value: str | None = None
    datatype: ParameterDatatype | None = None
    required: bool | None = None
    description: str | None = None


class Parameter(BaseModel):
    """A named, typed configuration value with a default."""

    id: str
    key: str
    default_value: str = ""
    datatype: ParameterDatatype = ParameterDatatype.STRING
    required: bool = False
    description: str = ""
    node_version: str | None = None
    is_deployed: bool = False
    created_at: str
    updated_at: str
