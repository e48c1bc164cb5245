"""
SecurityRules client: author, create, list and release security rules.

Usage:
    config = AppConfig.from_env()
    async with SecurityRules(HttpRulesBackend(access_token=token), config) as rules:
        ruleset = await rules.release_firestore_ruleset_from_source(source)
"""

import logging
from collections.abc import AsyncIterator

from security_rules.backend.base import RulesBackend
from security_rules.config import AppConfig
from security_rules.core.models import Ruleset, RulesetMetadata, RulesetMetadataList, RulesFile
from security_rules.core.naming import NameResolver
from security_rules.core.release import (
    FIRESTORE_RULES_FILE,
    STORAGE_RULES_FILE,
    ReleaseBinding,
    RulesetRef,
    firestore_target,
    storage_target,
)
from security_rules.core.rulesets import RulesetStore
from security_rules.observability.logger import get_logger


class SecurityRules:
    """
    Façade over the rules backend for one project.

    Every backend-facing method is a coroutine that returns freshly built
    immutable models or raises a SecurityRulesError subclass. Nothing is
    retried, cached or rolled back.
    """

    def __init__(
        self,
        backend: RulesBackend,
        config: AppConfig,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the client

        Args:
            backend: Rules backend performing the network calls
            config: Project ID and optional default storage bucket
            logger: Logger (security-rules.client by default)
        """
        self.backend = backend
        self.config = config
        self.logger = logger or get_logger("security-rules.client")

        self.resolver = NameResolver(config.project_id)
        self._store = RulesetStore(backend, self.resolver, logger=self.logger)
        self._firestore = ReleaseBinding(
            "firestore",
            self._store,
            firestore_target(self.resolver),
            FIRESTORE_RULES_FILE,
            logger=self.logger,
        )
        self._storage = ReleaseBinding(
            "storage",
            self._store,
            storage_target(self.resolver, config.storage_bucket),
            STORAGE_RULES_FILE,
            logger=self.logger,
        )

    @property
    def project_id(self) -> str:
        return self.config.project_id

    @property
    def default_bucket(self) -> str | None:
        return self.config.storage_bucket

    async def __aenter__(self) -> "SecurityRules":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.backend.aclose()
        return False

    # Rules files and rulesets

    def create_rules_file_from_source(self, name: str, source: str | bytes) -> RulesFile:
        """
        Create a RulesFile from a name and source text or UTF-8 bytes.

        This is a local operation and does not call the backend.

        Raises:
            InvalidArgumentError: If the name or source is empty or invalid
        """
        return RulesFile.from_source(name, source)

    async def create_ruleset(self, *files: RulesFile) -> Ruleset:
        """
        Create a new ruleset from one or more rules files.

        Returns:
            The created ruleset with its backend-assigned name
        """
        return await self._store.create(list(files))

    async def get_ruleset(self, name: str) -> Ruleset:
        """
        Get a ruleset by short name ("my-ruleset", not "projects/.../rulesets/my-ruleset").

        Raises:
            NotFoundError: If the ruleset does not exist
        """
        return await self._store.get(name)

    async def delete_ruleset(self, name: str) -> None:
        """
        Delete a ruleset by short name.

        Raises:
            NotFoundError: If the ruleset does not exist
        """
        await self._store.delete(name)

    async def list_ruleset_metadata(
        self, page_size: int | None = None, page_token: str | None = None
    ) -> RulesetMetadataList:
        """
        Retrieve one page of ruleset metadata.

        Args:
            page_size: Page size between 1 and 100, 100 when omitted
            page_token: Token from a previous page, omitted to start at the beginning

        Raises:
            InvalidArgumentError: If page_size is out of range (never clamped)
        """
        return await self._store.list_metadata(page_size, page_token)

    def iter_ruleset_metadata(self, page_size: int | None = None) -> AsyncIterator[RulesetMetadata]:
        """Iterate over all ruleset metadata, one page request at a time."""
        return self._store.iter_metadata(page_size)

    # Cloud Firestore

    async def get_firestore_ruleset(self) -> Ruleset:
        """
        Raises:
            NotFoundError: If no ruleset is released to Cloud Firestore
        """
        return await self._firestore.get_ruleset()

    async def release_firestore_ruleset_from_source(self, source: str | bytes) -> Ruleset:
        """Create a ruleset from source and release it to Cloud Firestore."""
        return await self._firestore.release_ruleset_from_source(source)

    async def release_firestore_ruleset(self, ruleset: RulesetRef) -> None:
        """Release an existing ruleset (name or RulesetMetadata) to Cloud Firestore."""
        await self._firestore.release_ruleset(ruleset)

    # Cloud Storage

    async def get_storage_ruleset(self, bucket: str | None = None) -> Ruleset:
        """
        Get the ruleset released to a bucket, the default bucket when omitted.

        Raises:
            InvalidArgumentError: If no bucket is given and none is configured
            NotFoundError: If no ruleset is released to the bucket
        """
        return await self._storage.get_ruleset(bucket)

    async def release_storage_ruleset_from_source(
        self, source: str | bytes, bucket: str | None = None
    ) -> Ruleset:
        """Create a ruleset from source and release it to a bucket."""
        return await self._storage.release_ruleset_from_source(source, bucket)

    async def release_storage_ruleset(
        self, ruleset: RulesetRef, bucket: str | None = None
    ) -> None:
        """Release an existing ruleset (name or RulesetMetadata) to a bucket."""
        await self._storage.release_ruleset(ruleset, bucket)
