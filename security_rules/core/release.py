"""
Release (binding) logic shared by the Firestore and Cloud Storage targets.

A release points one target at one ruleset. Both families follow the same
protocol and differ only in how the release resource name is built, so a
single ReleaseBinding class is parameterized by a target-path builder.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from security_rules.core.errors import InvalidArgumentError, SecurityRulesError
from security_rules.core.models import Ruleset, RulesFile
from security_rules.core.naming import NameResolver
from security_rules.core.rulesets import RulesetStore, call_backend
from security_rules.observability.logger import get_logger
from security_rules.observability.metrics import record_orphaned_ruleset, record_release
from security_rules.utils.validation import validate_bucket_name

FIRESTORE_RULES_FILE = "firestore.rules"
STORAGE_RULES_FILE = "storage.rules"


@runtime_checkable
class NamedRuleset(Protocol):
    """Anything carrying a ruleset short name, e.g. RulesetMetadata or Ruleset."""

    name: str


RulesetRef = str | NamedRuleset


def ruleset_name_of(ruleset: Any) -> str:
    """
    Extract the short ruleset name from a name string or a named object.

    Raises:
        InvalidArgumentError: If neither a string nor an object with a
            string ``name`` attribute is given
    """
    if isinstance(ruleset, str):
        return ruleset
    if isinstance(ruleset, NamedRuleset) and isinstance(ruleset.name, str):
        return ruleset.name
    raise InvalidArgumentError(
        "Ruleset must be a non-empty name or a RulesetMetadata object containing a name."
    )


def firestore_target(resolver: NameResolver) -> Callable[[str | None], str]:
    """Path builder for the single Cloud Firestore release of a project."""

    def build(_target: str | None = None) -> str:
        return resolver.firestore_release()

    return build


def storage_target(
    resolver: NameResolver, default_bucket: str | None
) -> Callable[[str | None], str]:
    """Path builder for per-bucket Cloud Storage releases with a default bucket."""

    def build(bucket: str | None = None) -> str:
        if bucket is None:
            bucket = default_bucket
        if not isinstance(bucket, str) or not bucket:
            raise InvalidArgumentError(
                "Bucket name not specified or invalid. Specify a default bucket name via "
                "the storage_bucket option when configuring the client, or specify the "
                "bucket name explicitly when calling the rules API."
            )
        return resolver.storage_release(validate_bucket_name(bucket))

    return build


class ReleaseBinding:
    """
    Reads and updates the release of one target family.

    Attributes:
        label: Target family name used in logs and metrics ("firestore", "storage")
        rules_file_name: File name given to rules created from raw source
    """

    def __init__(
        self,
        label: str,
        store: RulesetStore,
        target_path: Callable[[str | None], str],
        rules_file_name: str,
        logger: logging.Logger | None = None,
    ):
        self.label = label
        self.store = store
        self.target_path = target_path
        self.rules_file_name = rules_file_name
        self.logger = logger or get_logger(f"security-rules.release.{label}")

    async def get_ruleset(self, target: str | None = None) -> Ruleset:
        """
        Fetch the ruleset currently released to the target.

        Raises:
            NotFoundError: If nothing is released to the target
        """
        release_name = self.target_path(target)
        payload = await call_backend(
            "get_release",
            self.store.backend.get_release(release_name),
            logger=self.logger,
            release=release_name,
        )
        return await self.store.get(self.store.ruleset_name_of_release(payload))

    async def release_ruleset(self, ruleset: RulesetRef, target: str | None = None) -> None:
        """
        Point the target at an existing ruleset.

        Args:
            ruleset: Short ruleset name or an object with a ``name`` attribute
            target: Family specific target (bucket name for storage)

        Raises:
            NotFoundError: If the ruleset does not exist
        """
        name = ruleset_name_of(ruleset)
        ruleset_path = self.store.resolver.resolve(name)
        release_name = self.target_path(target)
        await self._bind(release_name, ruleset_path, name)

    async def release_ruleset_from_source(
        self, source: str | bytes, target: str | None = None
    ) -> Ruleset:
        """
        Create a ruleset from source, then release it to the target.

        The two backend calls are not transactional. When the release call
        fails the new ruleset stays behind unbound and the release error is
        raised unchanged; deleting the orphan is left to the caller. A
        cancellation between the two calls leaves the same state.

        Returns:
            The newly created and released ruleset
        """
        rules_file = RulesFile.from_source(self.rules_file_name, source)
        release_name = self.target_path(target)

        ruleset = await self.store.create([rules_file])
        try:
            await self._bind(release_name, self.store.resolver.resolve(ruleset.name), ruleset.name)
        except SecurityRulesError as e:
            self._record_orphan(ruleset.name, release_name, e.code)
            raise
        except asyncio.CancelledError:
            self._record_orphan(ruleset.name, release_name, "cancelled")
            raise
        return ruleset

    def _record_orphan(self, ruleset_name: str, release_name: str, error_code: str) -> None:
        record_orphaned_ruleset(self.label)
        self.logger.warning(
            "Ruleset created but not released",
            extra={
                "ruleset": ruleset_name,
                "release": release_name,
                "error_code": error_code,
            },
        )

    async def _bind(self, release_name: str, ruleset_path: str, ruleset_name: str) -> None:
        await call_backend(
            "update_release",
            self.store.backend.update_release(release_name, ruleset_path),
            logger=self.logger,
            release=release_name,
            ruleset=ruleset_name,
        )
        record_release(self.label)
