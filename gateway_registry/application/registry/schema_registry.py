"""
Schema registry.

Keeps the gateway schema in sync with its services:

- development/test: SDL is fetched live from every configured endpoint
- production: SDL comes from the registry files on the main branch, so
  only reviewed (merged) schema changes reach the gateway

New registry snapshots are published as release candidates: a branch
named after the release plus a pull request into the main branch.
"""

from __future__ import annotations

import asyncio
import inspect
import posixpath
from typing import Any, List, Optional, Sequence, Tuple

import structlog

from gateway_registry.application.registry.changes import RegistryChanges, diff_services
from gateway_registry.application.sdl.fetch_sdl import fetch_sdl
from gateway_registry.config import PRODUCTION, RegistryConfig
from gateway_registry.domain.registry.models import (
    BranchHead,
    EndpointConfig,
    RegistryFile,
    ReleaseCandidate,
    ServiceDescriptor,
)
from gateway_registry.domain.registry.registry_file import (
    FILE_SUFFIX,
    decode_registry_entry,
    encode_registry_file,
    slugify,
)
from gateway_registry.domain.shared.errors import (
    BranchExistsError,
    RegistryError,
    ReleaseError,
)
from gateway_registry.domain.shared.ports.remote_executor import (
    BuildSchema,
    ExecutorFactory,
)
from gateway_registry.domain.shared.ports.version_control import IVersionControlClient
from gateway_registry.infrastructure.github.queries import (
    FETCH_REGISTRY_FILES,
    FETCH_REGISTRY_VERSION,
)
from gateway_registry.infrastructure.remote.executor import make_remote_executor
from gateway_registry.infrastructure.retry import REGISTRY_PROBE_POLICY, RetryPolicy

logger = structlog.get_logger(__name__)

CREATE_MESSAGE = "create release candidate"
UPDATE_MESSAGE = "update release candidate"
DEFAULT_REFRESH_INTERVAL_S = 5.0


class SchemaRegistry:
    """Orchestrates loading, building and publishing the gateway schema.

    State (`services`, `schema`, `registry_version`) changes only in
    `load()`, which is serialized by a lock so an auto-refresh tick and
    an explicit load never interleave.

    Example:
        >>> registry = SchemaRegistry(config, client, build_gateway_schema)
        >>> schema = await registry.load()
        >>> release = await registry.create_or_update_release("spring release")
        >>> registry.start_auto_refresh()
    """

    def __init__(
        self,
        config: RegistryConfig,
        client: IVersionControlClient,
        build_schema: BuildSchema,
        executor_factory: ExecutorFactory = make_remote_executor,
        probe_policy: RetryPolicy = REGISTRY_PROBE_POLICY,
    ) -> None:
        """Initialize registry.

        Args:
            config: Environment, repository and endpoints
            client: Version-control host holding the registry
            build_schema: Gateway builder (sync or async)
            executor_factory: Builds an executor for a service URL
            probe_policy: Retry policy for the live `{ _sdl }` probe
        """
        self.env = config.env
        self.client = client
        self.endpoints = list(config.endpoints)
        self.registry_path = config.github.registry_path
        self.build_schema = build_schema
        self._executor_factory = executor_factory
        self._probe_policy = probe_policy

        self.registry_version: Optional[str] = None
        self.schema: Any = None
        self.services: Tuple[ServiceDescriptor, ...] = ()

        self._load_lock = asyncio.Lock()
        self._refresh_task: Optional[asyncio.Task[None]] = None

    @property
    def is_production(self) -> bool:
        return self.env == PRODUCTION

    @property
    def _registry_expression(self) -> str:
        return f"{self.client.main_branch}:{self.registry_path}"

    def _query_variables(self) -> dict:
        return {
            "owner": self.client.owner,
            "repo": self.client.repo,
            "path": self._registry_expression,
        }

    # ═══════════════════════════════════════════════════════════
    # RELEASES
    # ═══════════════════════════════════════════════════════════

    async def create_release(
        self, name: str, message: str = CREATE_MESSAGE
    ) -> ReleaseCandidate:
        """Publish a new release candidate; the branch must not exist.

        Raises:
            BranchExistsError: a release with this name already exists
        """
        branch_name = self._branch_name(name)
        files = self._release_files()
        branch = await self.client.create_head(branch_name)
        release = await self._publish(branch, files, message)
        await self.client.create_pull_request(branch_name)
        return release

    async def update_release(
        self, name: str, message: str = UPDATE_MESSAGE
    ) -> ReleaseCandidate:
        """Push current services onto an existing release branch.

        Raises:
            BranchNotFoundError: no release with this name exists
        """
        branch_name = self._branch_name(name)
        files = self._release_files()
        branch = await self.client.get_head(branch_name)
        return await self._publish(branch, files, message)

    async def create_or_update_release(
        self, name: str, message: Optional[str] = None
    ) -> ReleaseCandidate:
        """Create the release branch, or update it if it already exists.

        The slugified name identifies the release line; calling this
        again with the same name adds a commit on the same branch. The
        pull request is opened once, after the first commit.
        """
        branch_name = self._branch_name(name)
        files = self._release_files()
        try:
            branch = await self.client.create_head(branch_name)
            created = True
        except BranchExistsError:
            branch = await self.client.get_head(branch_name)
            created = False

        default = CREATE_MESSAGE if created else UPDATE_MESSAGE
        release = await self._publish(branch, files, message or default)

        if created:
            await self.client.create_pull_request(branch_name)
        return release

    def _branch_name(self, name: str) -> str:
        branch_name = slugify(name)
        if not branch_name:
            raise ReleaseError(f"Release name {name!r} is empty")
        return branch_name

    def _release_files(self) -> List[RegistryFile]:
        files = self.current_files()
        if not files:
            raise ReleaseError("No services loaded; call load() before publishing")
        return files

    async def _publish(
        self, branch: BranchHead, files: Sequence[RegistryFile], message: str
    ) -> ReleaseCandidate:
        tree_sha = await self.client.create_tree(branch.sha, files)
        commit_sha = await self.client.create_commit(branch.sha, tree_sha, message)
        await self.client.update_head(branch.branch, commit_sha)

        logger.info(
            "Release candidate published",
            branch=branch.branch,
            commit=commit_sha,
            parent=branch.sha,
            services=len(files),
        )
        return ReleaseCandidate(name=branch.branch, version=commit_sha)

    def current_files(self) -> List[RegistryFile]:
        """Encode the current services as registry files."""
        return [
            encode_registry_file(self.registry_path, service, self._registry_url(service))
            for service in self.services
        ]

    def _registry_url(self, service: ServiceDescriptor) -> str:
        # production endpoint is what gateways reading the registry will call
        for endpoint in self.endpoints:
            if endpoint.name == service.name:
                return endpoint.registry_url() or service.url
        return service.url

    # ═══════════════════════════════════════════════════════════
    # LOADING
    # ═══════════════════════════════════════════════════════════

    async def get_registry_version(self) -> Optional[str]:
        """Current OID of the registry tree on the main branch."""
        data = await self.client.graphql(FETCH_REGISTRY_VERSION, self._query_variables())
        obj = (data.get("repository") or {}).get("object")
        return obj["oid"] if obj else None

    async def _fetch_registry(self) -> Tuple[str, List[ServiceDescriptor]]:
        data = await self.client.graphql(FETCH_REGISTRY_FILES, self._query_variables())
        obj = (data.get("repository") or {}).get("object")
        if not obj:
            raise RegistryError(f"Registry not found at {self._registry_expression}")

        services = []
        for entry in obj.get("entries") or []:
            if entry.get("type") != "blob" or not entry["name"].endswith(FILE_SUFFIX):
                continue
            text = (entry.get("object") or {}).get("text")
            if text is None:
                # binary or truncated blob
                continue
            services.append(decode_registry_entry(entry["name"], text))
        return obj["oid"], services

    async def load_registry_services(self) -> List[ServiceDescriptor]:
        """Decode all registry files on the main branch.

        Records the tree OID as `registry_version`.

        Raises:
            RegistryError: registry path missing on the main branch
            MalformedRegistryEntryError: a file lost its `# $url` header
        """
        version, services = await self._fetch_registry()
        self.registry_version = version
        logger.info(
            "Registry services loaded",
            version=version,
            services=[s.name for s in services],
        )
        return services

    async def load_local_services(self) -> List[ServiceDescriptor]:
        """Fetch SDL live from every configured endpoint."""

        async def load_one(endpoint: EndpointConfig) -> ServiceDescriptor:
            url = endpoint.url_for(self.env)
            sdl = await fetch_sdl(self._executor_factory(url), self._probe_policy)
            return ServiceDescriptor(name=endpoint.name, url=url, sdl=sdl)

        services = await asyncio.gather(*(load_one(e) for e in self.endpoints))
        logger.info("Live services loaded", env=self.env, services=[s.name for s in services])
        return list(services)

    async def load(self) -> Any:
        """Refresh services and rebuild the schema.

        In production the registry is authoritative: it is reloaded when
        never loaded or when its OID moved, and the cached schema is kept
        when the OID is unchanged. Elsewhere every endpoint is probed live.
        """
        async with self._load_lock:
            version: Optional[str] = None
            if self.is_production:
                if self.registry_version is not None and self.schema is not None:
                    current = await self.get_registry_version()
                    if current == self.registry_version:
                        logger.debug("Registry unchanged", version=current)
                        return self.schema
                version, services = await self._fetch_registry()
            else:
                services = await self.load_local_services()

            schema = await self._build(services)
            self.services = tuple(services)
            self.schema = schema
            if version is not None:
                # recorded only once the schema for it is built
                self.registry_version = version
                logger.info(
                    "Registry services loaded",
                    version=version,
                    services=[s.name for s in services],
                )
            return self.schema

    async def pending_changes(self) -> RegistryChanges:
        """Diff the main-branch registry against the current services.

        Current services are compared as they would be published, with
        their registry URLs. Registry state is left untouched.
        """
        published: List[ServiceDescriptor] = []
        if await self.get_registry_version() is not None:
            _, published = await self._fetch_registry()

        candidate = [
            decode_registry_entry(posixpath.basename(f.path), f.contents)
            for f in self.current_files()
        ]
        return diff_services(published, candidate)

    async def _build(self, services: Sequence[ServiceDescriptor]) -> Any:
        schema = self.build_schema(services)
        if inspect.isawaitable(schema):
            schema = await schema
        return schema

    # ═══════════════════════════════════════════════════════════
    # AUTO REFRESH
    # ═══════════════════════════════════════════════════════════

    def start_auto_refresh(self, interval_s: float = DEFAULT_REFRESH_INTERVAL_S) -> None:
        """Reload every `interval_s` seconds in the background.

        The next wait starts when a load finishes, so slow loads stretch
        the period instead of overlapping. Must be called from a running
        event loop.
        """
        self.stop_auto_refresh()
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._refresh_loop(interval_s)
        )

    def stop_auto_refresh(self) -> None:
        """Cancel the background refresh, if any."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None

    @property
    def auto_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def _refresh_loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            try:
                await self.load()
            except Exception:
                logger.exception("Schema refresh failed", env=self.env)
