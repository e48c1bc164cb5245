"""
In-process rules backend.

Keeps rulesets and releases in dictionaries and follows the same contract
as the HTTP backend: backend-assigned names, newest-first listings, opaque
page tokens and classified errors. Failures can be scripted per operation,
which makes it the test double for partial-failure scenarios.
"""

import uuid
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Any

from security_rules.backend.base import RulesBackend
from security_rules.core.errors import NotFoundError
from security_rules.core.models import RulesFile
from security_rules.core.pagination import decode_page_token, encode_page_token


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


class InMemoryRulesBackend(RulesBackend):
    """
    Dictionary-backed RulesBackend.

    Attributes:
        rulesets: Ruleset payloads keyed by full name, in creation order
        releases: Release payloads keyed by full release name
        calls: Log of (operation, argument) tuples, oldest first
    """

    def __init__(self) -> None:
        self.rulesets: dict[str, dict[str, Any]] = {}
        self.releases: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[str, deque[Exception]] = defaultdict(deque)

    def fail_next(self, operation: str, error: Exception) -> None:
        """
        Make the next call of ``operation`` raise ``error``.

        Args:
            operation: Backend method name (e.g. "update_release")
            error: Exception to raise instead of performing the call
        """
        self._failures[operation].append(error)

    def _enter(self, operation: str, argument: str) -> None:
        self.calls.append((operation, argument))
        pending = self._failures.get(operation)
        if pending:
            raise pending.popleft()

    def _require_ruleset(self, name: str) -> dict[str, Any]:
        payload = self.rulesets.get(name)
        if payload is None:
            raise NotFoundError(f"Ruleset {name} not found.")
        return payload

    async def create_ruleset(self, parent: str, files: list[RulesFile]) -> dict[str, Any]:
        self._enter("create_ruleset", parent)
        name = f"{parent}/rulesets/{uuid.uuid4()}"
        payload = {
            "name": name,
            "createTime": _utc_timestamp(),
            "source": {"files": [{"name": f.name, "content": f.content} for f in files]},
        }
        self.rulesets[name] = payload
        return payload

    async def get_ruleset(self, name: str) -> dict[str, Any]:
        self._enter("get_ruleset", name)
        return self._require_ruleset(name)

    async def delete_ruleset(self, name: str) -> None:
        self._enter("delete_ruleset", name)
        self._require_ruleset(name)
        del self.rulesets[name]

    async def list_rulesets(
        self, parent: str, page_size: int, page_token: str | None = None
    ) -> dict[str, Any]:
        self._enter("list_rulesets", parent)
        offset = decode_page_token(page_token) if page_token else 0

        prefix = f"{parent}/rulesets/"
        entries = [
            {"name": payload["name"], "createTime": payload["createTime"]}
            for name, payload in reversed(self.rulesets.items())
            if name.startswith(prefix)
        ]
        if offset > len(entries):
            raise NotFoundError(f"Page token {page_token!r} does not match any page.")

        page = entries[offset:offset + page_size]
        result: dict[str, Any] = {"rulesets": page}
        if offset + page_size < len(entries):
            result["nextPageToken"] = encode_page_token(offset + page_size)
        return result

    async def get_release(self, name: str) -> dict[str, Any]:
        self._enter("get_release", name)
        release = self.releases.get(name)
        if release is None:
            raise NotFoundError(f"Release {name} not found.")
        return release

    async def update_release(self, name: str, ruleset_name: str) -> dict[str, Any]:
        self._enter("update_release", name)
        self._require_ruleset(ruleset_name)
        now = _utc_timestamp()
        previous = self.releases.get(name)
        release = {
            "name": name,
            "rulesetName": ruleset_name,
            "createTime": previous["createTime"] if previous else now,
            "updateTime": now,
        }
        self.releases[name] = release
        return release

    def operations(self) -> list[str]:
        """Names of the operations called so far."""
        return [operation for operation, _ in self.calls]
