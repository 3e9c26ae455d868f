"""Domain errors raised by the mediation stores and services."""

from typing import Any


class MediationError(Exception):
    """Base exception for mediation domain errors."""

    def __init__(self, message: str, entity: str | None = None):
        super().__init__(message)
        self.entity = entity


class LifecycleError(MediationError):
    """A transition that is not allowed from the entity's current state."""

    pass


class ActiveNodeConflict(MediationError):
    """Another node family is already the globally active node."""

    def __init__(self, message: str, active_node: dict[str, Any]):
        super().__init__(message, entity="node_family")
        self.active_node = active_node


class FlowValidationError(MediationError):
    """The flow graph failed validation and cannot be deployed."""

    def __init__(self, errors: list[str]):
        super().__init__("Flow validation failed", entity="flow")
        self.errors = errors


class InvalidReference(MediationError):
    """A reference points at an entity outside the allowed scope."""

    pass
