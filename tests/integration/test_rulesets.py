"""
Integration tests for ruleset CRUD and listing through the SecurityRules client.
"""

import asyncio

import pytest

from security_rules.core.errors import (
    DeadlineExceededError,
    InvalidArgumentError,
    InvalidServerResponseError,
    NotFoundError,
    UnavailableError,
    UnknownError,
)
from security_rules.core.models import Ruleset


@pytest.mark.integration
class TestCreateRuleset:
    """Tests for create_rules_file_from_source / create_ruleset"""

    def test_rules_file_is_local(self, client, backend):
        rules_file = client.create_rules_file_from_source("firestore.rules", "// allow all")
        assert rules_file.name == "firestore.rules"
        assert backend.calls == []

    def test_invalid_rules_file_is_local(self, client, backend):
        with pytest.raises(InvalidArgumentError):
            client.create_rules_file_from_source("firestore.rules", "")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_create_and_get(self, client):
        rules_file = client.create_rules_file_from_source("firestore.rules", "// allow all")
        ruleset = await client.create_ruleset(rules_file)

        assert isinstance(ruleset, Ruleset)
        assert ruleset.name
        assert "/" not in ruleset.name
        assert ruleset.create_time
        assert [(f.name, f.content) for f in ruleset.source] == [("firestore.rules", "// allow all")]

        fetched = await client.get_ruleset(ruleset.name)
        assert fetched == ruleset
        assert fetched is not ruleset

    @pytest.mark.asyncio
    async def test_create_keeps_file_order(self, client):
        files = [
            client.create_rules_file_from_source(name, f"// {name}")
            for name in ("b.rules", "a.rules", "c.rules")
        ]
        ruleset = await client.create_ruleset(*files)
        assert [f.name for f in ruleset.source] == ["b.rules", "a.rules", "c.rules"]

    @pytest.mark.asyncio
    async def test_create_requires_files(self, client, backend):
        with pytest.raises(InvalidArgumentError):
            await client.create_ruleset()
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_create_rejects_non_rules_file(self, client, backend):
        with pytest.raises(InvalidArgumentError):
            await client.create_ruleset({"name": "firestore.rules", "content": "// rules"})
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_backend_error_surfaces_unchanged(self, client, backend):
        error = UnavailableError("backend down")
        backend.fail_next("create_ruleset", error)
        rules_file = client.create_rules_file_from_source("firestore.rules", "// rules")

        with pytest.raises(UnavailableError) as exc_info:
            await client.create_ruleset(rules_file)
        assert exc_info.value is error
        assert backend.rulesets == {}

    @pytest.mark.asyncio
    async def test_timeout_is_classified(self, client, backend):
        backend.fail_next("get_ruleset", TimeoutError())
        with pytest.raises(DeadlineExceededError) as exc_info:
            await client.get_ruleset("anything")
        assert exc_info.value.code == "deadline-exceeded"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, client, backend):
        backend.fail_next("get_ruleset", RuntimeError("socket exploded"))
        with pytest.raises(UnknownError) as exc_info:
            await client.get_ruleset("anything")
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_malformed_backend_payload(self, client, backend):
        async def broken_get(name):
            return {"name": name}

        backend.get_ruleset = broken_get
        with pytest.raises(InvalidServerResponseError):
            await client.get_ruleset("anything")

    @pytest.mark.asyncio
    async def test_foreign_project_payload(self, client, backend):
        async def foreign_get(name):
            return {
                "name": "projects/other-project/rulesets/r1",
                "createTime": "2026-01-01T00:00:00Z",
                "source": {"files": [{"name": "firestore.rules", "content": "// rules"}]},
            }

        backend.get_ruleset = foreign_get
        with pytest.raises(InvalidServerResponseError):
            await client.get_ruleset("r1")


@pytest.mark.integration
class TestGetAndDeleteRuleset:
    """Tests for get_ruleset / delete_ruleset"""

    @pytest.mark.asyncio
    async def test_get_nonexistent(self, client):
        with pytest.raises(NotFoundError):
            await client.get_ruleset("nonexistent")

    @pytest.mark.asyncio
    async def test_get_invalid_name_is_local(self, client, backend):
        with pytest.raises(InvalidArgumentError):
            await client.get_ruleset("projects/test-project/rulesets/abc")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_delete_nonexistent(self, client):
        with pytest.raises(NotFoundError):
            await client.delete_ruleset("nonexistent")

    @pytest.mark.asyncio
    async def test_delete_existing(self, client):
        rules_file = client.create_rules_file_from_source("firestore.rules", "// rules")
        ruleset = await client.create_ruleset(rules_file)

        await client.delete_ruleset(ruleset.name)

        with pytest.raises(NotFoundError):
            await client.get_ruleset(ruleset.name)


async def _create_many(client, count: int) -> list[str]:
    names = []
    for index in range(count):
        rules_file = client.create_rules_file_from_source("firestore.rules", f"// {index}")
        names.append((await client.create_ruleset(rules_file)).name)
    return names


@pytest.mark.integration
class TestListRulesetMetadata:
    """Tests for list_ruleset_metadata / iter_ruleset_metadata"""

    @pytest.mark.asyncio
    async def test_empty_listing(self, client):
        page = await client.list_ruleset_metadata()
        assert page.rulesets == ()
        assert page.next_page_token is None

    @pytest.mark.asyncio
    async def test_first_page_starts_with_newest(self, client):
        names = await _create_many(client, 3)
        page = await client.list_ruleset_metadata()
        assert [m.name for m in page.rulesets] == list(reversed(names))
        assert page.next_page_token is None

    @pytest.mark.asyncio
    async def test_chaining_visits_every_ruleset_once(self, client):
        names = await _create_many(client, 7)

        seen: list[str] = []
        token = None
        pages = 0
        while True:
            page = await client.list_ruleset_metadata(page_size=3, page_token=token)
            pages += 1
            seen.extend(m.name for m in page.rulesets)
            if page.next_page_token is None:
                break
            token = page.next_page_token

        assert pages == 3
        assert seen == list(reversed(names))
        assert len(set(seen)) == len(seen)

    @pytest.mark.asyncio
    async def test_exact_multiple_has_no_trailing_token(self, client):
        await _create_many(client, 4)
        first = await client.list_ruleset_metadata(page_size=2)
        second = await client.list_ruleset_metadata(page_size=2, page_token=first.next_page_token)
        assert len(second.rulesets) == 2
        assert second.next_page_token is None

    @pytest.mark.asyncio
    async def test_iter_ruleset_metadata(self, client, backend):
        names = await _create_many(client, 5)
        backend.calls.clear()

        seen = [m.name async for m in client.iter_ruleset_metadata(page_size=2)]

        assert seen == list(reversed(names))
        assert backend.operations() == ["list_rulesets"] * 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_size", [0, 101])
    async def test_out_of_range_page_size_is_rejected_locally(self, client, backend, page_size):
        with pytest.raises(InvalidArgumentError):
            await client.list_ruleset_metadata(page_size=page_size)
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_unknown_page_token_is_surfaced(self, client):
        with pytest.raises(InvalidArgumentError):
            await client.list_ruleset_metadata(page_token="made-up-token")


@pytest.mark.integration
class TestConcurrentCalls:
    """Independent calls issued concurrently on one client"""

    @pytest.mark.asyncio
    async def test_concurrent_listings(self, client):
        names = await _create_many(client, 3)

        first, second = await asyncio.gather(
            client.list_ruleset_metadata(),
            client.list_ruleset_metadata(page_size=2),
        )

        assert [m.name for m in first.rulesets] == list(reversed(names))
        assert [m.name for m in second.rulesets] == list(reversed(names))[:2]
        assert second.next_page_token is not None
        assert first.rulesets[0] == second.rulesets[0]
        assert first.rulesets[0] is not second.rulesets[0]

    @pytest.mark.asyncio
    async def test_create_races_delete_of_another_ruleset(self, client):
        kept, doomed = await _create_many(client, 2)
        rules_file = client.create_rules_file_from_source("firestore.rules", "// concurrent")

        created, deleted = await asyncio.gather(
            client.create_ruleset(rules_file),
            client.delete_ruleset(doomed),
        )

        assert deleted is None
        assert created.name not in (kept, doomed)
        assert created.source[0].content == "// concurrent"

        fetched = await client.get_ruleset(created.name)
        assert fetched == created
        assert fetched is not created
        with pytest.raises(NotFoundError):
            await client.get_ruleset(doomed)

        page = await client.list_ruleset_metadata()
        assert {m.name for m in page.rulesets} == {kept, created.name}
