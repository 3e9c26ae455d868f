"""Tests for the shared API client: error mapping and mock fallback."""

import httpx
import pytest

from mediation.client import (
    ApiClient,
    ConflictError,
    DataSource,
    HttpError,
    NetworkError,
    NotFoundError,
    ValidationFailed,
    results_of,
    user_message,
)


def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def answering(status: int, body=None, text: str | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=body)

    return handler


def make_client(handler, allow_fallback: bool = False) -> ApiClient:
    return ApiClient("http://mediation.test/api", transport=httpx.MockTransport(handler), allow_fallback=allow_fallback)


class TestUserMessage:
    def test_detail_wins(self):
        error = HttpError("x", 409, {"detail": "Flow is deployed", "message": "other", "error": "third"})
        assert user_message(error) == "Flow is deployed"

    def test_message_then_error(self):
        assert user_message(HttpError("x", 400, {"message": "Bad input", "error": "e"})) == "Bad input"
        assert user_message(HttpError("x", 400, {"error": "Broken"})) == "Broken"

    def test_non_string_detail_is_skipped(self):
        error = HttpError("Unprocessable", 422, {"detail": [{"loc": ["body", "name"]}]})
        assert user_message(error) == "Unprocessable"

    def test_plain_exception_and_none(self):
        assert user_message(NetworkError("Could not reach")) == "Could not reach"
        assert user_message(None) == "Request failed"


class TestResultsOf:
    def test_shapes(self):
        assert results_of([1, 2]) == [1, 2]
        assert results_of({"results": [3], "count": 1}) == [3]
        assert results_of({"results": None}) == []
        assert results_of(None) == []


class TestErrorMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,body,error_type",
        [
            (404, {"detail": "Flow not found"}, NotFoundError),
            (409, {"detail": "Already deployed"}, ConflictError),
            (422, {"detail": "Flow validation failed", "errors": ["Flow has no nodes"]}, ValidationFailed),
            (500, {"detail": "boom"}, HttpError),
        ],
    )
    async def test_status_codes(self, status, body, error_type):
        async with make_client(answering(status, body)) as api:
            with pytest.raises(error_type) as exc_info:
                await api.get("flows/1/")

        assert exc_info.value.status_code == status
        assert str(exc_info.value) == body["detail"]

    @pytest.mark.asyncio
    async def test_validation_errors_are_kept_verbatim(self):
        body = {"detail": "Flow validation failed", "errors": ["Flow has no nodes", "Edge e1 connects a node to itself"]}
        async with make_client(answering(422, body)) as api:
            with pytest.raises(ValidationFailed) as exc_info:
                await api.post("flows/1/deploy/")
        assert exc_info.value.errors == body["errors"]

    @pytest.mark.asyncio
    async def test_conflict_exposes_active_node(self):
        body = {"detail": "busy", "active_node": {"family_id": "f1", "name": "Collector"}}
        async with make_client(answering(409, body)) as api:
            with pytest.raises(ConflictError) as exc_info:
                await api.post("node-families/f2/versions/1/deploy/")
        assert exc_info.value.active_node["name"] == "Collector"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        async with make_client(answering(502, text="Bad Gateway")) as api:
            with pytest.raises(HttpError) as exc_info:
                await api.get("flows/")
        assert str(exc_info.value) == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_relative_paths_join_under_api(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=[])

        async with make_client(handler) as api:
            await api.get("flows/", params={"page": 2})

        assert seen == ["http://mediation.test/api/flows/?page=2"]


class TestFallback:
    @pytest.mark.asyncio
    async def test_read_falls_back_when_unreachable(self):
        async with make_client(unreachable, allow_fallback=True) as api:
            result = await api.read("flows/", parse=list, fallback=lambda: ["sample"])

        assert result.data == ["sample"]
        assert result.source == DataSource.FALLBACK
        assert result.is_fallback
        assert isinstance(result.error, NetworkError)

    @pytest.mark.asyncio
    async def test_no_fallback_unless_enabled(self):
        async with make_client(unreachable, allow_fallback=False) as api:
            with pytest.raises(NetworkError):
                await api.read("flows/", parse=list, fallback=lambda: ["sample"])

    @pytest.mark.asyncio
    async def test_http_errors_never_fall_back(self):
        async with make_client(answering(500, {"detail": "boom"}), allow_fallback=True) as api:
            with pytest.raises(HttpError):
                await api.read("flows/", parse=list, fallback=lambda: ["sample"])

    @pytest.mark.asyncio
    async def test_writes_never_fall_back(self):
        async with make_client(unreachable, allow_fallback=True) as api:
            with pytest.raises(NetworkError):
                await api.post("flows/", json={"name": "x"})

    @pytest.mark.asyncio
    async def test_backend_result_is_marked(self):
        async with make_client(answering(200, {"results": [1, 2]}), allow_fallback=True) as api:
            result = await api.read("flows/", parse=results_of, fallback=list)

        assert result.data == [1, 2]
        assert result.source == DataSource.BACKEND
        assert result.error is None
