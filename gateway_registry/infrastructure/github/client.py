"""GitHub client - Implements IVersionControlClient port.

Uses the git data REST endpoints (refs, trees, commits), the pulls
endpoint and the GraphQL API for reads.

Key Features:
- Branch creation off the main branch head ("Reference already exists" → BranchExistsError)
- Tree creation layered over the branch commit's tree
- Non-forced ref updates (fast-forward only)
- GraphQL reads with errors surfaced as VersionControlError
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from gateway_registry.config import GitHubConfig
from gateway_registry.domain.registry.models import BranchHead, PullRequest, RegistryFile
from gateway_registry.domain.shared.errors import (
    BranchExistsError,
    BranchNotFoundError,
    VersionControlError,
)

logger = structlog.get_logger(__name__)


class GitHubClient:
    """
    GitHub adapter implementing IVersionControlClient port.

    Example:
        >>> async with GitHubClient(config) as client:
        ...     head = await client.get_head("main")
        ...     print(head.sha)
    """

    ACCEPT = "application/vnd.github+json"
    API_VERSION = "2022-11-28"
    REF_EXISTS = "Reference already exists"

    def __init__(
        self,
        config: GitHubConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            config: Repository identity and credentials
            http_client: Preconfigured client (tests); opened on enter otherwise
        """
        self._config = config
        self._session: Optional[httpx.AsyncClient] = http_client
        self._owns_session = http_client is None

    async def __aenter__(self) -> "GitHubClient":
        """Async context manager entry."""
        if self._session is None:
            self._session = httpx.AsyncClient(
                base_url=self._config.api_url,
                headers=self._headers(),
                timeout=httpx.Timeout(self._config.timeout_s),
            )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._session is not None and self._owns_session:
            await self._session.aclose()
            self._session = None

    @property
    def owner(self) -> str:
        return self._config.owner

    @property
    def repo(self) -> str:
        return self._config.repo

    @property
    def main_branch(self) -> str:
        return self._config.main_branch

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": self.ACCEPT,
            "X-GitHub-Api-Version": self.API_VERSION,
        }
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    def _repo_path(self, suffix: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/{suffix}"

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        if self._session is None:
            raise RuntimeError("Client not initialized. Use async context manager.")

        logger.debug("GitHub request", method=method, path=path)
        try:
            return await self._session.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise VersionControlError(f"GitHub request failed: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}"

    def _check(self, response: httpx.Response, action: str) -> Dict[str, Any]:
        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(
                "GitHub API error",
                action=action,
                status=response.status_code,
                message=message,
            )
            raise VersionControlError(f"{action}: {message}", status=response.status_code)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def get_head(self, branch: str) -> BranchHead:
        response = await self._request("GET", self._repo_path(f"git/ref/heads/{branch}"))
        if response.status_code == 404:
            raise BranchNotFoundError(branch)
        data = self._check(response, f"get head {branch}")
        return BranchHead(branch=branch, sha=data["object"]["sha"])

    async def create_head(self, branch: str) -> BranchHead:
        main = await self.get_head(self.main_branch)
        response = await self._request(
            "POST",
            self._repo_path("git/refs"),
            {"ref": f"refs/heads/{branch}", "sha": main.sha},
        )
        if response.status_code == 422 and self.REF_EXISTS in self._error_message(response):
            raise BranchExistsError(branch)
        data = self._check(response, f"create head {branch}")
        logger.info("Branch created", branch=branch, sha=main.sha)
        return BranchHead(branch=branch, sha=data["object"]["sha"])

    async def _commit_tree(self, commit_sha: str) -> str:
        response = await self._request("GET", self._repo_path(f"git/commits/{commit_sha}"))
        data = self._check(response, f"get commit {commit_sha}")
        return data["tree"]["sha"]

    async def create_tree(self, base_sha: str, files: Sequence[RegistryFile]) -> str:
        base_tree = await self._commit_tree(base_sha)
        tree: List[Dict[str, str]] = [
            {
                "path": f.path,
                "mode": f.mode,
                "type": f.type,
                "content": f.contents,
            }
            for f in files
        ]
        response = await self._request(
            "POST",
            self._repo_path("git/trees"),
            {"base_tree": base_tree, "tree": tree},
        )
        data = self._check(response, "create tree")
        return data["sha"]

    async def create_commit(self, base_sha: str, tree_sha: str, message: str) -> str:
        response = await self._request(
            "POST",
            self._repo_path("git/commits"),
            {"message": message, "tree": tree_sha, "parents": [base_sha]},
        )
        data = self._check(response, "create commit")
        return data["sha"]

    async def update_head(self, branch: str, commit_sha: str) -> None:
        response = await self._request(
            "PATCH",
            self._repo_path(f"git/refs/heads/{branch}"),
            {"sha": commit_sha, "force": False},
        )
        self._check(response, f"update head {branch}")

    async def create_pull_request(self, branch: str) -> PullRequest:
        response = await self._request(
            "POST",
            self._repo_path("pulls"),
            {
                "title": branch,
                "head": branch,
                "base": self.main_branch,
                "body": f"Schema registry release candidate `{branch}`.",
            },
        )
        data = self._check(response, f"create pull request {branch}")
        logger.info("Pull request opened", branch=branch, number=data.get("number"))
        return PullRequest(
            branch=branch,
            number=data["number"],
            url=data.get("html_url"),
        )

    async def graphql(
        self, document: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST", "/graphql", {"query": document, "variables": variables or {}}
        )
        result = self._check(response, "graphql")
        errors = result.get("errors")
        if errors:
            messages = [err.get("message", str(err)) for err in errors]
            raise VersionControlError(f"GraphQL errors: {'; '.join(messages)}")
        return result.get("data") or {}
