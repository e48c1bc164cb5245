"""
REST backend for the Firebase Security Rules API (v1) over httpx.

Authentication is left to the caller: pass a bearer access token or a
preconfigured httpx.AsyncClient.
"""

from typing import Any

import httpx

from security_rules.backend.base import RulesBackend
from security_rules.core.errors import (
    DeadlineExceededError,
    InvalidServerResponseError,
    NotFoundError,
    SecurityRulesError,
    UnavailableError,
    classify_http_status,
    classify_status,
)
from security_rules.core.models import RulesFile

RULES_API_URL = "https://firebaserules.googleapis.com/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpRulesBackend(RulesBackend):
    """
    RulesBackend talking to firebaserules.googleapis.com.

    Transport failures are classified (timeouts as DeadlineExceededError,
    connection problems as UnavailableError) and never retried.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str = RULES_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the REST backend

        Args:
            access_token: OAuth2 bearer token sent with every request
            base_url: API root, overridable for emulators
            timeout: Per-request timeout in seconds
            client: Pre-built client; takes precedence over the other arguments
        """
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
            self._client = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)
            self._owns_client = True

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, f"/{path}", **kwargs)
        except httpx.TimeoutException as e:
            raise DeadlineExceededError(f"{method} {path} timed out: {e}") from e
        except httpx.TransportError as e:
            raise UnavailableError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_from_response(response)

        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            raise InvalidServerResponseError(f"{method} {path} returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise InvalidServerResponseError(f"{method} {path} returned a non-object payload")
        return payload

    @staticmethod
    def _error_from_response(response: httpx.Response) -> SecurityRulesError:
        """Classify an error response, preferring the RPC status in the body."""
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            message = error.get("message") or f"HTTP {response.status_code}"
            status = error.get("status")
            if status:
                return classify_status(status, message)
            return classify_http_status(response.status_code, message)

        return classify_http_status(
            response.status_code,
            f"Unexpected response with status {response.status_code}: {response.text}",
        )

    async def create_ruleset(self, parent: str, files: list[RulesFile]) -> dict[str, Any]:
        body = {"source": {"files": [{"name": f.name, "content": f.content} for f in files]}}
        return await self._request("POST", f"{parent}/rulesets", json=body)

    async def get_ruleset(self, name: str) -> dict[str, Any]:
        return await self._request("GET", name)

    async def delete_ruleset(self, name: str) -> None:
        await self._request("DELETE", name)

    async def list_rulesets(
        self, parent: str, page_size: int, page_token: str | None = None
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token
        return await self._request("GET", f"{parent}/rulesets", params=params)

    async def get_release(self, name: str) -> dict[str, Any]:
        return await self._request("GET", name)

    async def update_release(self, name: str, ruleset_name: str) -> dict[str, Any]:
        release = {"name": name, "rulesetName": ruleset_name}
        try:
            return await self._request("PATCH", name, json={"release": release})
        except NotFoundError:
            # First release for this target: the release resource must be created
            parent = name.split("/releases/", 1)[0]
            return await self._request("POST", f"{parent}/releases", json=release)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
