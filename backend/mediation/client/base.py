"""HTTP client shared by the entity API clients.

Every read comes back as an ``ApiResult`` saying where its data came from.
Mock data is only ever served when the client was built with
``allow_fallback=True`` and the backend could not be reached at all; the
result is then marked as fallback and keeps the original error. HTTP error
responses and writes always raise.

Example:
    async with ApiClient("http://127.0.0.1:8000/api/") as api:
        flows = FlowClient(api)
        result = await flows.list_flows()
        if result.is_fallback:
            print(f"Showing sample data: {user_message(result.error)}")
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

from mediation import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiError(Exception):
    """Base exception for mediation API errors."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message)
        self.body = body


class NetworkError(ApiError):
    """The request never got a response (connection refused, timeout)."""

    pass


class HttpError(ApiError):
    """The service answered with an error status."""

    def __init__(self, message: str, status_code: int, body: Any = None):
        super().__init__(message, body)
        self.status_code = status_code


class NotFoundError(HttpError):
    pass


class ConflictError(HttpError):
    """The requested transition conflicts with the current state."""

    @property
    def active_node(self) -> dict[str, Any] | None:
        if isinstance(self.body, dict):
            return self.body.get("active_node")
        return None


class ValidationFailed(HttpError):
    """The flow (or request) did not pass validation."""

    def __init__(self, message: str, status_code: int, errors: list[str], body: Any = None):
        super().__init__(message, status_code, body)
        self.errors = errors


def user_message(error: BaseException | None, default: str = "Request failed") -> str:
    """Operator-facing message for an error.

    Looks at the response body's ``detail``, then ``message``, then
    ``error``, and falls back to the exception text.
    """
    if error is None:
        return default
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return str(error) or default


class DataSource(str, Enum):
    """Where the data of an ApiResult came from."""

    BACKEND = "backend"
    FALLBACK = "fallback"


@dataclass
class ApiResult(Generic[T]):
    """Data returned by a read, tagged with its source."""

    data: T
    source: DataSource = DataSource.BACKEND
    error: ApiError | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source == DataSource.FALLBACK


def results_of(body: Any) -> list[Any]:
    """Accept either a bare list or a paginated ``{results: [...]}`` body."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        return body.get("results") or []
    return []


class ApiClient:
    """Thin wrapper around httpx.AsyncClient for the mediation service."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        allow_fallback: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Service base URL ending in ``/api/`` (default: MEDIATION_API_URL)
            timeout: Request timeout in seconds
            allow_fallback: Serve mock data on transport failure (default: MEDIATION_MOCK_FALLBACK)
            transport: Optional httpx transport, used by tests
        """
        url = base_url or config.API_URL
        # Relative paths only join under the base path with a trailing slash
        self.base_url = url if url.endswith("/") else url + "/"
        self.allow_fallback = config.MOCK_FALLBACK if allow_fallback is None else allow_fallback
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded body.

        Raises:
            NetworkError: No response was received
            HttpError: The service returned an error status
        """
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkError(f"Could not reach the mediation service: {e}") from e

        if response.is_error:
            raise self._error_for(response)
        if not response.content:
            return None
        if response.headers.get("content-type", "").startswith("application/json"):
            return response.json()
        return response.text

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def read(
        self,
        path: str,
        parse: Callable[[Any], T],
        fallback: Callable[[], T] | None = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResult[T]:
        """GET ``path`` and parse it, falling back to mock data if allowed."""
        try:
            body = await self.get(path, params=params)
        except NetworkError as e:
            if not (self.allow_fallback and fallback is not None):
                raise
            logger.warning(f"Serving fallback data for {path}: {e}")
            return ApiResult(data=fallback(), source=DataSource.FALLBACK, error=e)
        return ApiResult(data=parse(body))

    def _error_for(self, response: httpx.Response) -> HttpError:
        try:
            body: Any = response.json()
        except ValueError:
            body = {"detail": response.text} if response.text else None

        status = response.status_code
        message = user_message(HttpError("", status, body), default=f"HTTP {status}")
        if status == 404:
            return NotFoundError(message, status, body)
        if status == 409:
            return ConflictError(message, status, body)
        if isinstance(body, dict) and isinstance(body.get("errors"), list):
            return ValidationFailed(message, status, body["errors"], body)
        return HttpError(message, status, body)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
