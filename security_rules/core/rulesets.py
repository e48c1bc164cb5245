"""
Ruleset operations against the rules backend.

RulesetStore translates short names to resource paths on the way in,
validates backend payloads on the way out and turns them into fresh
immutable models. It never retries and never caches.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from security_rules.backend.base import RulesBackend
from security_rules.core.errors import (
    DeadlineExceededError,
    InvalidArgumentError,
    InvalidServerResponseError,
    SecurityRulesError,
    UnknownError,
)
from security_rules.core.models import Ruleset, RulesetMetadata, RulesetMetadataList, RulesFile
from security_rules.core.naming import NameResolver
from security_rules.core.pagination import iter_metadata, normalize_page_request
from security_rules.observability.logger import get_logger, log_call
from security_rules.observability.metrics import record_backend_call

T = TypeVar("T")


class _FilePayload(BaseModel):
    name: str
    content: str


class _SourcePayload(BaseModel):
    files: list[_FilePayload] = Field(..., min_length=1)


class _RulesetPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    create_time: str = Field(..., alias="createTime")
    source: _SourcePayload | None = None


class _PagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rulesets: list[_RulesetPayload] = Field(default_factory=list)
    next_page_token: str | None = Field(None, alias="nextPageToken")


class _ReleasePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    ruleset_name: str = Field(..., alias="rulesetName", min_length=1)


async def call_backend(
    operation: str,
    awaitable: Awaitable[T],
    logger: logging.Logger | None = None,
    **fields: Any,
) -> T:
    """
    Await a backend call, classifying, logging and timing its outcome.

    Classified errors pass through unchanged, timeouts become
    DeadlineExceededError and any other exception becomes UnknownError.
    Cancellation propagates untouched.

    Args:
        operation: Backend operation name used in logs and metrics
        awaitable: The pending backend call
        logger: Logger for the call record
        **fields: Extra structured log fields

    Returns:
        The backend result
    """
    outcome = "cancelled"
    started = time.perf_counter()
    try:
        with log_call(operation, logger=logger, **fields):
            try:
                result = await awaitable
            except SecurityRulesError:
                raise
            except (TimeoutError, asyncio.TimeoutError) as e:
                raise DeadlineExceededError(f"{operation} timed out") from e
            except Exception as e:
                raise UnknownError(f"{operation} failed: {e}") from e
        outcome = "success"
        return result
    except SecurityRulesError as e:
        outcome = e.code
        raise
    finally:
        record_backend_call(operation, outcome, time.perf_counter() - started)


class RulesetStore:
    """
    Create, fetch, delete and list rulesets of one project.
    """

    def __init__(self, backend: RulesBackend, resolver: NameResolver, logger: logging.Logger | None = None):
        self.backend = backend
        self.resolver = resolver
        self.logger = logger or get_logger("security-rules.rulesets")

    def to_ruleset(self, payload: Any) -> Ruleset:
        """
        Build a Ruleset from a backend payload.

        Raises:
            InvalidServerResponseError: If the payload is malformed or names
                a ruleset outside this project
        """
        try:
            parsed = _RulesetPayload.model_validate(payload)
            if parsed.source is None:
                raise InvalidServerResponseError(f"Ruleset {parsed.name} has no source files")
            return Ruleset(
                name=self._shorten(parsed.name),
                create_time=parsed.create_time,
                source=tuple(
                    RulesFile(name=f.name, content=f.content) for f in parsed.source.files
                ),
            )
        except ValidationError as e:
            raise InvalidServerResponseError(f"Invalid ruleset response: {e}") from e

    def to_metadata_list(self, payload: Any) -> RulesetMetadataList:
        try:
            parsed = _PagePayload.model_validate(payload)
            return RulesetMetadataList(
                rulesets=tuple(
                    RulesetMetadata(name=self._shorten(entry.name), create_time=entry.create_time)
                    for entry in parsed.rulesets
                ),
                next_page_token=parsed.next_page_token or None,
            )
        except ValidationError as e:
            raise InvalidServerResponseError(f"Invalid ruleset list response: {e}") from e

    def ruleset_name_of_release(self, payload: Any) -> str:
        """Extract the short name of the ruleset a release points at."""
        try:
            parsed = _ReleasePayload.model_validate(payload)
        except ValidationError as e:
            raise InvalidServerResponseError(f"Invalid release response: {e}") from e
        return self._shorten(parsed.ruleset_name)

    def _shorten(self, full_name: str) -> str:
        try:
            return self.resolver.shorten(full_name)
        except InvalidArgumentError as e:
            raise InvalidServerResponseError(e.message) from e

    async def create(self, files: list[RulesFile]) -> Ruleset:
        """
        Create a ruleset from one or more rules files.

        Raises:
            InvalidArgumentError: If no files are given or an entry is not a RulesFile
        """
        if not files:
            raise InvalidArgumentError("At least one RulesFile is required to create a ruleset.")
        for f in files:
            if not isinstance(f, RulesFile):
                raise InvalidArgumentError(
                    f"Expected RulesFile, got {type(f).__name__}. "
                    "Use create_rules_file_from_source() to build rules files."
                )

        payload = await call_backend(
            "create_ruleset",
            self.backend.create_ruleset(self.resolver.project_path, list(files)),
            logger=self.logger,
            files=[f.name for f in files],
        )
        return self.to_ruleset(payload)

    async def get(self, name: str) -> Ruleset:
        path = self.resolver.resolve(name)
        payload = await call_backend(
            "get_ruleset", self.backend.get_ruleset(path), logger=self.logger, ruleset=name
        )
        return self.to_ruleset(payload)

    async def delete(self, name: str) -> None:
        path = self.resolver.resolve(name)
        await call_backend(
            "delete_ruleset", self.backend.delete_ruleset(path), logger=self.logger, ruleset=name
        )

    async def list_metadata(
        self, page_size: int | None = None, page_token: str | None = None
    ) -> RulesetMetadataList:
        size, token = normalize_page_request(page_size, page_token)
        payload = await call_backend(
            "list_rulesets",
            self.backend.list_rulesets(self.resolver.project_path, size, token),
            logger=self.logger,
            page_size=size,
        )
        return self.to_metadata_list(payload)

    def iter_metadata(self, page_size: int | None = None) -> AsyncIterator[RulesetMetadata]:
        """Iterate over every ruleset, fetching one page per network call."""
        size, _ = normalize_page_request(page_size)

        async def fetch_page(token: str | None) -> RulesetMetadataList:
            return await self.list_metadata(size, token)

        return iter_metadata(fetch_page)
