"""
Unit tests for the REST backend using httpx.MockTransport.
"""

import json

import httpx
import pytest

from security_rules.backend.http import HttpRulesBackend
from security_rules.core.errors import (
    DeadlineExceededError,
    InvalidServerResponseError,
    NotFoundError,
    PermissionDeniedError,
    UnavailableError,
)
from security_rules.core.models import RulesFile

BASE_URL = "https://rules.test/v1"


def _backend(handler) -> HttpRulesBackend:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HttpRulesBackend(client=client)


def _error(status_code: int, status: str, message: str) -> httpx.Response:
    return httpx.Response(
        status_code, json={"error": {"code": status_code, "status": status, "message": message}}
    )


@pytest.mark.unit
class TestHttpRulesBackend:
    """Tests for HttpRulesBackend request mapping and error classification"""

    @pytest.mark.asyncio
    async def test_create_ruleset(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"name": "projects/p/rulesets/r1", "createTime": "2026-01-01T00:00:00Z",
                      "source": seen["body"]["source"]},
            )

        backend = _backend(handler)
        files = [RulesFile(name="firestore.rules", content="// rules")]
        payload = await backend.create_ruleset("projects/p", files)

        assert seen["method"] == "POST"
        assert seen["path"] == "/v1/projects/p/rulesets"
        assert seen["body"] == {"source": {"files": [{"name": "firestore.rules", "content": "// rules"}]}}
        assert payload["name"] == "projects/p/rulesets/r1"
        await backend.aclose()

    @pytest.mark.asyncio
    async def test_list_rulesets_query_parameters(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"rulesets": []})

        backend = _backend(handler)
        await backend.list_rulesets("projects/p", 10, "tok")
        assert seen["params"] == {"pageSize": "10", "pageToken": "tok"}

        await backend.list_rulesets("projects/p", 100)
        assert seen["params"] == {"pageSize": "100"}

    @pytest.mark.asyncio
    async def test_delete_with_empty_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(200)

        backend = _backend(handler)
        assert await backend.delete_ruleset("projects/p/rulesets/r1") is None

    @pytest.mark.asyncio
    async def test_update_release_patches_existing_release(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"name": "x", "rulesetName": "y"})

        backend = _backend(handler)
        await backend.update_release(
            "projects/p/releases/cloud.firestore", "projects/p/rulesets/r1"
        )

        assert requests == [
            (
                "PATCH",
                "/v1/projects/p/releases/cloud.firestore",
                {"release": {"name": "projects/p/releases/cloud.firestore",
                             "rulesetName": "projects/p/rulesets/r1"}},
            )
        ]

    @pytest.mark.asyncio
    async def test_update_release_creates_missing_release(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path))
            if request.method == "PATCH":
                return _error(404, "NOT_FOUND", "Release not found")
            return httpx.Response(200, json=json.loads(request.content))

        backend = _backend(handler)
        payload = await backend.update_release(
            "projects/p/releases/firebase.storage/bucket", "projects/p/rulesets/r1"
        )

        assert requests == [
            ("PATCH", "/v1/projects/p/releases/firebase.storage/bucket"),
            ("POST", "/v1/projects/p/releases"),
        ]
        assert payload["rulesetName"] == "projects/p/rulesets/r1"

    @pytest.mark.asyncio
    async def test_update_release_missing_ruleset_surfaces_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return _error(404, "NOT_FOUND", "Ruleset not found")

        backend = _backend(handler)
        with pytest.raises(NotFoundError):
            await backend.update_release("projects/p/releases/cloud.firestore", "projects/p/rulesets/x")

    @pytest.mark.asyncio
    async def test_error_status_from_body(self):
        backend = _backend(lambda request: _error(403, "PERMISSION_DENIED", "No access"))
        with pytest.raises(PermissionDeniedError) as exc_info:
            await backend.get_ruleset("projects/p/rulesets/r1")
        assert exc_info.value.message == "No access"

    @pytest.mark.asyncio
    async def test_error_status_from_http_code(self):
        backend = _backend(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(UnavailableError) as exc_info:
            await backend.get_release("projects/p/releases/cloud.firestore")
        assert "503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_is_deadline_exceeded(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        backend = _backend(handler)
        with pytest.raises(DeadlineExceededError):
            await backend.get_ruleset("projects/p/rulesets/r1")

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        backend = _backend(handler)
        with pytest.raises(UnavailableError):
            await backend.get_ruleset("projects/p/rulesets/r1")

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        backend = _backend(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(InvalidServerResponseError):
            await backend.get_ruleset("projects/p/rulesets/r1")

    @pytest.mark.asyncio
    async def test_bearer_token_header(self):
        backend = HttpRulesBackend(access_token="secret-token")
        assert backend._client.headers["Authorization"] == "Bearer secret-token"
        await backend.aclose()
