"""In-memory version-control host.

Provides an in-memory implementation of IVersionControlClient port for
tests and local development. Objects are content-addressed (SHA-1), so
identical registry contents always produce the same tree OID.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from gateway_registry.domain.registry.models import BranchHead, PullRequest, RegistryFile
from gateway_registry.domain.shared.errors import (
    BranchExistsError,
    BranchNotFoundError,
    VersionControlError,
)
from gateway_registry.infrastructure.vcs.read_schema import (
    Blob,
    GitObject,
    Tree,
    TreeEntry,
    read_schema,
)

logger = structlog.get_logger(__name__)

Snapshot = Dict[str, str]


def _sha1(payload: str) -> str:
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Commit:
    """Stored commit: full file snapshot via its tree, plus parents."""

    sha: str
    tree_sha: str
    parents: Tuple[str, ...]
    message: str


class InMemoryVersionControlClient:
    """
    In-memory implementation of IVersionControlClient port.

    Thread safety: NOT thread-safe (single event loop only)
    Persistence: Data lost on process restart (in-memory only)

    Example:
        >>> host = InMemoryVersionControlClient(
        ...     files={"schemas/catalog.graphql": "# $url http://x/graphql\\n\\ntype Query { ok: Boolean }"}
        ... )
        >>> head = await host.get_head("main")
    """

    def __init__(
        self,
        owner: str = "local",
        repo: str = "registry",
        main_branch: str = "main",
        files: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize host with one root commit on the main branch."""
        self._owner = owner
        self._repo = repo
        self._main_branch = main_branch
        self._trees: Dict[str, Snapshot] = {}
        self._commits: Dict[str, Commit] = {}
        self._branches: Dict[str, str] = {}
        self._pull_requests: List[PullRequest] = []
        self._commit_counter = 0

        root_tree = self._store_tree(dict(files or {}))
        self._branches[main_branch] = self._store_commit(root_tree, (), "initial commit")

    async def __aenter__(self) -> "InMemoryVersionControlClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        return None

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def repo(self) -> str:
        return self._repo

    @property
    def main_branch(self) -> str:
        return self._main_branch

    @property
    def pull_requests(self) -> List[PullRequest]:
        return list(self._pull_requests)

    # ------------------------------------------------------------------
    # storage
    # ------------------------------------------------------------------

    def _store_tree(self, snapshot: Snapshot) -> str:
        sha = _sha1(json.dumps(sorted(snapshot.items())))
        self._trees[sha] = dict(snapshot)
        return sha

    def _store_commit(self, tree_sha: str, parents: Tuple[str, ...], message: str) -> str:
        self._commit_counter += 1
        sha = _sha1(
            json.dumps([tree_sha, list(parents), message, self._commit_counter])
        )
        self._commits[sha] = Commit(sha=sha, tree_sha=tree_sha, parents=parents, message=message)
        return sha

    def _snapshot(self, sha: str) -> Snapshot:
        """Files of a commit or tree SHA."""
        if sha in self._commits:
            return self._trees[self._commits[sha].tree_sha]
        if sha in self._trees:
            return self._trees[sha]
        raise VersionControlError(f"Object not found: {sha}", status=404)

    def _is_ancestor(self, ancestor: str, sha: str) -> bool:
        pending = [sha]
        seen = set()
        while pending:
            current = pending.pop()
            if current == ancestor:
                return True
            if current in seen:
                continue
            seen.add(current)
            pending.extend(self._commits[current].parents)
        return False

    # ------------------------------------------------------------------
    # IVersionControlClient
    # ------------------------------------------------------------------

    async def get_head(self, branch: str) -> BranchHead:
        if branch not in self._branches:
            raise BranchNotFoundError(branch)
        return BranchHead(branch=branch, sha=self._branches[branch])

    async def create_head(self, branch: str) -> BranchHead:
        if branch in self._branches:
            raise BranchExistsError(branch)
        sha = self._branches[self._main_branch]
        self._branches[branch] = sha
        logger.debug("Branch created", branch=branch, sha=sha)
        return BranchHead(branch=branch, sha=sha)

    async def create_tree(self, base_sha: str, files: Sequence[RegistryFile]) -> str:
        snapshot = dict(self._snapshot(base_sha))
        for f in files:
            snapshot[f.path] = f.contents
        return self._store_tree(snapshot)

    async def create_commit(self, base_sha: str, tree_sha: str, message: str) -> str:
        if base_sha not in self._commits:
            raise VersionControlError(f"Parent commit not found: {base_sha}", status=422)
        if tree_sha not in self._trees:
            raise VersionControlError(f"Tree not found: {tree_sha}", status=422)
        return self._store_commit(tree_sha, (base_sha,), message)

    async def update_head(self, branch: str, commit_sha: str) -> None:
        if branch not in self._branches:
            raise BranchNotFoundError(branch)
        if commit_sha not in self._commits:
            raise VersionControlError(f"Commit not found: {commit_sha}", status=422)
        if not self._is_ancestor(self._branches[branch], commit_sha):
            raise VersionControlError("Update is not a fast forward", status=422)
        self._branches[branch] = commit_sha

    async def create_pull_request(self, branch: str) -> PullRequest:
        if branch not in self._branches:
            raise VersionControlError(f"Head branch not found: {branch}", status=422)
        if any(pr.branch == branch for pr in self._pull_requests):
            raise VersionControlError(
                f"A pull request already exists for {branch}", status=422
            )
        pr = PullRequest(branch=branch, number=len(self._pull_requests) + 1)
        self._pull_requests.append(pr)
        return pr

    async def graphql(
        self, document: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        result = await read_schema.execute(
            document,
            variable_values=variables or {},
            context_value={"host": self},
        )
        if result.errors:
            messages = [err.message for err in result.errors]
            raise VersionControlError(f"GraphQL errors: {'; '.join(messages)}")
        return result.data or {}

    # ------------------------------------------------------------------
    # read API
    # ------------------------------------------------------------------

    def resolve_expression(self, expression: str) -> Optional[GitObject]:
        """Resolve a `{ref}:{path}` expression to a tree or blob."""
        ref, _, path = expression.partition(":")
        sha = self._branches.get(ref, ref)
        try:
            snapshot = self._snapshot(sha)
        except VersionControlError:
            return None
        return self._object_at(snapshot, path.strip("/"))

    def _object_at(self, snapshot: Snapshot, path: str) -> Optional[GitObject]:
        if path in snapshot:
            return Blob(oid=_sha1(snapshot[path]), text=snapshot[path])

        prefix = f"{path}/" if path else ""
        children = {p[len(prefix):]: c for p, c in snapshot.items() if p.startswith(prefix)}
        if not children:
            return None

        names = sorted({rel.split("/", 1)[0] for rel in children})
        entries = []
        for name in names:
            child = self._object_at(snapshot, f"{prefix}{name}")
            entry_type = "blob" if isinstance(child, Blob) else "tree"
            entries.append(TreeEntry(name=name, type=entry_type, object=child))

        oid = _sha1(json.dumps(sorted(children.items())))
        return Tree(oid=oid, entries=entries)

    # ------------------------------------------------------------------
    # helpers for tests and local workflows
    # ------------------------------------------------------------------

    def get_commit(self, sha: str) -> Commit:
        """Look up a stored commit."""
        try:
            return self._commits[sha]
        except KeyError:
            raise VersionControlError(f"Commit not found: {sha}", status=404) from None

    def files_at(self, ref: str) -> Snapshot:
        """Files visible at a branch name or commit SHA."""
        return dict(self._snapshot(self._branches.get(ref, ref)))

    def commit_files(self, files: Mapping[str, str], message: str, branch: Optional[str] = None) -> str:
        """Commit files directly on a branch (default: main)."""
        branch = branch or self._main_branch
        head = self._branches[branch]
        snapshot = dict(self._snapshot(head))
        snapshot.update(files)
        sha = self._store_commit(self._store_tree(snapshot), (head,), message)
        self._branches[branch] = sha
        return sha

    def merge_pull_request(self, branch: str) -> str:
        """Fast-forward the main branch to a release branch (approved review)."""
        if branch not in self._branches:
            raise BranchNotFoundError(branch)
        head = self._branches[branch]
        if not self._is_ancestor(self._branches[self._main_branch], head):
            raise VersionControlError("Merge is not a fast forward", status=409)
        self._branches[self._main_branch] = head
        logger.info("Release merged", branch=branch, sha=head)
        return head
