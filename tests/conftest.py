"""
Shared fixtures for registry tests.

Collaborators are faked at the port boundary: remote executors return
canned `{ _sdl }` envelopes, the version-control host is the in-memory
implementation (or an AsyncMock when a test asserts it is never touched).
"""

from typing import Any, Dict, Iterator, List

import pytest
from structlog.testing import capture_logs

from gateway_registry.config import GitHubConfig, RegistryConfig
from gateway_registry.domain.registry.models import EndpointConfig, ServiceDescriptor
from gateway_registry.infrastructure.retry import RetryPolicy
from gateway_registry.infrastructure.vcs.in_memory_client import InMemoryVersionControlClient

from fakes import CATALOG_SDL, REVIEWS_SDL, FakeExecutor, RecordingSleep, sdl_response


# ═══════════════════════════════════════════════════════════
# CONFIG FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def github_config() -> GitHubConfig:
    return GitHubConfig(owner="acme", repo="gateway", token="t0ken", registry_path="schemas")


@pytest.fixture
def endpoints() -> List[EndpointConfig]:
    return [
        EndpointConfig(
            name="catalog",
            url={
                "development": "http://localhost:4001/graphql",
                "production": "https://catalog.acme.io/graphql",
            },
        ),
        EndpointConfig(
            name="reviews",
            url={
                "development": "http://localhost:4002/graphql",
                "production": "https://reviews.acme.io/graphql",
            },
        ),
    ]


@pytest.fixture
def dev_config(github_config: GitHubConfig, endpoints: List[EndpointConfig]) -> RegistryConfig:
    return RegistryConfig(env="development", github=github_config, endpoints=endpoints)


@pytest.fixture
def prod_config(github_config: GitHubConfig, endpoints: List[EndpointConfig]) -> RegistryConfig:
    return RegistryConfig(env="production", github=github_config, endpoints=endpoints)


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, delay_s=0)


# ═══════════════════════════════════════════════════════════
# COLLABORATOR FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def live_executors() -> Dict[str, FakeExecutor]:
    """One healthy executor per development URL."""
    return {
        "http://localhost:4001/graphql": FakeExecutor(
            "http://localhost:4001/graphql", [sdl_response(CATALOG_SDL)]
        ),
        "http://localhost:4002/graphql": FakeExecutor(
            "http://localhost:4002/graphql", [sdl_response(REVIEWS_SDL)]
        ),
    }


@pytest.fixture
def executor_factory(live_executors: Dict[str, FakeExecutor]) -> Any:
    return lambda url: live_executors[url]


@pytest.fixture
def host() -> InMemoryVersionControlClient:
    """Host with a published registry on main."""
    return InMemoryVersionControlClient(
        owner="acme",
        repo="gateway",
        files={
            "README.md": "registry",
            "schemas/catalog.graphql": (
                "# $url https://catalog.acme.io/graphql\n\n" + CATALOG_SDL
            ),
        },
    )


@pytest.fixture
def services() -> List[ServiceDescriptor]:
    return [
        ServiceDescriptor(name="catalog", url="http://localhost:4001/graphql", sdl=CATALOG_SDL),
        ServiceDescriptor(name="reviews", url="http://localhost:4002/graphql", sdl=REVIEWS_SDL),
    ]


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def log_events() -> Iterator[List[Dict[str, Any]]]:
    """Structlog events emitted during the test, kept off stdout."""
    with capture_logs() as events:
        yield events
