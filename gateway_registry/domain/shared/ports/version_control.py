"""Version-control host port (interface).

Defines the branch / tree / commit / pull request operations the schema
registry needs from a hosted repository. Infrastructure provides the
implementations (GitHub, in-memory).
"""

from typing import Any, Dict, Optional, Protocol, Sequence

from gateway_registry.domain.registry.models import BranchHead, PullRequest, RegistryFile


class IVersionControlClient(Protocol):
    """
    Interface for registry persistence on a version-control host.

    Owner, repository and main branch are fixed configuration of the
    client, not per-call state.

    Example usage (application layer):
        >>> branch = await client.create_head("spring-release")
        >>> tree = await client.create_tree(branch.sha, files)
        >>> commit = await client.create_commit(branch.sha, tree, "msg")
        >>> await client.update_head("spring-release", commit)
    """

    @property
    def owner(self) -> str:
        ...

    @property
    def repo(self) -> str:
        ...

    @property
    def main_branch(self) -> str:
        ...

    async def get_head(self, branch: str) -> BranchHead:
        """
        Look up the commit a branch points at.

        Raises:
            BranchNotFoundError: If the branch does not exist
        """
        ...

    async def create_head(self, branch: str) -> BranchHead:
        """
        Create a branch off the main branch head.

        Raises:
            BranchExistsError: If the branch already exists
        """
        ...

    async def create_tree(self, base_sha: str, files: Sequence[RegistryFile]) -> str:
        """Create a tree from `files` layered over `base_sha`; returns its SHA."""
        ...

    async def create_commit(self, base_sha: str, tree_sha: str, message: str) -> str:
        """Create a commit with parent `base_sha`; returns its SHA."""
        ...

    async def update_head(self, branch: str, commit_sha: str) -> None:
        """Fast-forward a branch to `commit_sha`."""
        ...

    async def create_pull_request(self, branch: str) -> PullRequest:
        """Open a pull request from `branch` into the main branch."""
        ...

    async def graphql(
        self, document: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Run a read query against the host's GraphQL API.

        Returns:
            The `data` member of the response

        Raises:
            VersionControlError: If the response carries errors
        """
        ...
