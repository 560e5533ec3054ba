"""
Tests for the in-memory version-control host.
"""

import pytest

from gateway_registry.domain.registry.models import RegistryFile
from gateway_registry.domain.shared.errors import (
    BranchExistsError,
    BranchNotFoundError,
    VersionControlError,
)
from gateway_registry.infrastructure.github.queries import (
    FETCH_REGISTRY_FILES,
    FETCH_REGISTRY_VERSION,
)
from gateway_registry.infrastructure.vcs.in_memory_client import InMemoryVersionControlClient

VARIABLES = {"owner": "acme", "repo": "gateway", "path": "main:schemas"}


async def publish(host: InMemoryVersionControlClient, branch: str, path: str, text: str) -> str:
    head = await host.get_head(branch)
    tree = await host.create_tree(head.sha, [RegistryFile(path=path, contents=text)])
    commit = await host.create_commit(head.sha, tree, "update")
    await host.update_head(branch, commit)
    return commit


class TestBranches:
    @pytest.mark.asyncio
    async def test_new_branch_starts_at_main(self, host: InMemoryVersionControlClient) -> None:
        main = await host.get_head("main")

        branch = await host.create_head("spring")

        assert branch.sha == main.sha
        assert (await host.get_head("spring")).sha == main.sha

    @pytest.mark.asyncio
    async def test_duplicate_branch(self, host: InMemoryVersionControlClient) -> None:
        await host.create_head("spring")

        with pytest.raises(BranchExistsError):
            await host.create_head("spring")

    @pytest.mark.asyncio
    async def test_missing_branch(self, host: InMemoryVersionControlClient) -> None:
        with pytest.raises(BranchNotFoundError):
            await host.get_head("nope")


class TestCommits:
    @pytest.mark.asyncio
    async def test_tree_keeps_untouched_files(self, host: InMemoryVersionControlClient) -> None:
        await host.create_head("spring")

        commit = await publish(host, "spring", "schemas/reviews.graphql", "# $url r\n\n")

        files = host.files_at("spring")
        assert set(files) == {"README.md", "schemas/catalog.graphql", "schemas/reviews.graphql"}
        assert host.get_commit(commit).parents == ((await host.get_head("main")).sha,)
        assert "schemas/reviews.graphql" not in host.files_at("main")

    @pytest.mark.asyncio
    async def test_update_head_requires_fast_forward(
        self, host: InMemoryVersionControlClient
    ) -> None:
        await host.create_head("spring")
        main = await host.get_head("main")
        await publish(host, "spring", "schemas/a.graphql", "a")

        with pytest.raises(VersionControlError) as exc_info:
            await host.update_head("spring", main.sha)

        assert exc_info.value.status == 422

    @pytest.mark.asyncio
    async def test_commit_unknown_tree(self, host: InMemoryVersionControlClient) -> None:
        main = await host.get_head("main")

        with pytest.raises(VersionControlError):
            await host.create_commit(main.sha, "missing", "msg")


class TestPullRequests:
    @pytest.mark.asyncio
    async def test_one_pull_request_per_branch(self, host: InMemoryVersionControlClient) -> None:
        await host.create_head("spring")

        pr = await host.create_pull_request("spring")

        assert pr.number == 1
        with pytest.raises(VersionControlError):
            await host.create_pull_request("spring")

    @pytest.mark.asyncio
    async def test_merge_fast_forwards_main(self, host: InMemoryVersionControlClient) -> None:
        await host.create_head("spring")
        commit = await publish(host, "spring", "schemas/a.graphql", "a")

        merged = host.merge_pull_request("spring")

        assert merged == commit
        assert (await host.get_head("main")).sha == commit

    @pytest.mark.asyncio
    async def test_merge_diverged(self, host: InMemoryVersionControlClient) -> None:
        await host.create_head("spring")
        host.commit_files({"schemas/b.graphql": "b"}, "direct")
        host.commit_files({"schemas/a.graphql": "a"}, "side", branch="spring")

        with pytest.raises(VersionControlError) as exc_info:
            host.merge_pull_request("spring")

        assert exc_info.value.status == 409


class TestReadApi:
    @pytest.mark.asyncio
    async def test_registry_version(self, host: InMemoryVersionControlClient) -> None:
        data = await host.graphql(FETCH_REGISTRY_VERSION, VARIABLES)

        assert len(data["repository"]["object"]["oid"]) == 40

    @pytest.mark.asyncio
    async def test_registry_files(self, host: InMemoryVersionControlClient) -> None:
        data = await host.graphql(FETCH_REGISTRY_FILES, VARIABLES)

        entries = data["repository"]["object"]["entries"]
        assert [e["name"] for e in entries] == ["catalog.graphql"]
        assert entries[0]["type"] == "blob"
        assert entries[0]["object"]["text"].startswith("# $url https://catalog.acme.io/graphql")

    @pytest.mark.asyncio
    async def test_oid_tracks_contents(self, host: InMemoryVersionControlClient) -> None:
        before = await host.graphql(FETCH_REGISTRY_VERSION, VARIABLES)
        host.commit_files({"README.md": "docs only"}, "docs")
        unchanged = await host.graphql(FETCH_REGISTRY_VERSION, VARIABLES)
        host.commit_files({"schemas/reviews.graphql": "# $url r\n\n"}, "add reviews")
        changed = await host.graphql(FETCH_REGISTRY_VERSION, VARIABLES)

        assert unchanged == before
        assert changed != before

    @pytest.mark.asyncio
    async def test_missing_path(self, host: InMemoryVersionControlClient) -> None:
        data = await host.graphql(FETCH_REGISTRY_VERSION, {**VARIABLES, "path": "main:nope"})

        assert data["repository"]["object"] is None

    @pytest.mark.asyncio
    async def test_query_errors_raise(self, host: InMemoryVersionControlClient) -> None:
        with pytest.raises(VersionControlError, match="GraphQL errors"):
            await host.graphql("{ repository(owner: \"acme\", name: \"gateway\") { missing } }")
