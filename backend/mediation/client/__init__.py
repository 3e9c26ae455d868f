"""HTTP clients for the mediation service."""

from mediation.client.base import (
    ApiClient,
    ApiError,
    ApiResult,
    ConflictError,
    DataSource,
    HttpError,
    NetworkError,
    NotFoundError,
    ValidationFailed,
    results_of,
    user_message,
)
from mediation.client.flows import FlowClient
from mediation.client.nodes import NodeClient, activation_warning, palette_entry
from mediation.client.parameters import ParameterClient
from mediation.client.subnodes import SubnodeClient

__all__ = [
    # Transport
    "ApiClient",
    "ApiResult",
    "DataSource",
    "user_message",
    "results_of",
    # Errors
    "ApiError",
    "NetworkError",
    "HttpError",
    "NotFoundError",
    "ConflictError",
    "ValidationFailed",
    # Entity clients
    "FlowClient",
    "NodeClient",
    "SubnodeClient",
    "ParameterClient",
    "activation_warning",
    "palette_entry",
]
