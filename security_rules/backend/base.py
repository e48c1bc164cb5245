"""
Abstract rules backend contract.

A backend speaks in fully qualified resource names and REST-shaped JSON
payloads. Name translation and response validation happen in the client.
"""

from abc import ABC, abstractmethod
from typing import Any

from security_rules.core.models import RulesFile


class RulesBackend(ABC):
    """
    Asynchronous collaborator performing the actual rules service calls.

    Implementations raise SecurityRulesError subclasses for failures they
    can classify; anything else is wrapped by the client as UnknownError.

    Payload shapes:
        ruleset:  {"name": str, "createTime": str,
                   "source": {"files": [{"name": str, "content": str}]}}
        page:     {"rulesets": [{"name": str, "createTime": str}], "nextPageToken": str}
        release:  {"name": str, "rulesetName": str}
    """

    @abstractmethod
    async def create_ruleset(self, parent: str, files: list[RulesFile]) -> dict[str, Any]:
        """Create a ruleset under ``parent`` (``projects/{id}``)."""
        pass

    @abstractmethod
    async def get_ruleset(self, name: str) -> dict[str, Any]:
        pass

    @abstractmethod
    async def delete_ruleset(self, name: str) -> None:
        pass

    @abstractmethod
    async def list_rulesets(
        self, parent: str, page_size: int, page_token: str | None = None
    ) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_release(self, name: str) -> dict[str, Any]:
        """Fetch a release; the payload references its ruleset by ``rulesetName``."""
        pass

    @abstractmethod
    async def update_release(self, name: str, ruleset_name: str) -> dict[str, Any]:
        """Point the release ``name`` at ``ruleset_name``, creating it if needed."""
        pass

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""
        return None
