"""Version-control client factory.

Environment-based host selection.
Strategy:
- VCS_BACKEND=github (default): GitHubClient against the configured repository
- VCS_BACKEND=inmemory: InMemoryVersionControlClient (local runs, tests)

Usage:
    from gateway_registry.infrastructure.vcs.factory import get_version_control_client

    client = get_version_control_client(config.github)
"""

import os
from typing import Optional

from gateway_registry.config import GitHubConfig
from gateway_registry.domain.shared.errors import ConfigurationError
from gateway_registry.domain.shared.ports.version_control import IVersionControlClient
from gateway_registry.infrastructure.github.client import GitHubClient
from gateway_registry.infrastructure.vcs.in_memory_client import InMemoryVersionControlClient


def create_version_control_client(config: GitHubConfig) -> IVersionControlClient:
    """Create a client based on the VCS_BACKEND env var.

    Raises:
        ConfigurationError: unknown backend name
    """
    mode = os.getenv("VCS_BACKEND", "github").lower()

    if mode == "inmemory":
        return InMemoryVersionControlClient(
            owner=config.owner,
            repo=config.repo,
            main_branch=config.main_branch,
        )
    if mode == "github":
        return GitHubClient(config)

    raise ConfigurationError(f"Unknown VCS_BACKEND '{mode}' (expected github or inmemory)")


_client: Optional[IVersionControlClient] = None


def get_version_control_client(config: GitHubConfig) -> IVersionControlClient:
    """Get singleton client instance."""
    global _client
    if _client is None:
        _client = create_version_control_client(config)
    return _client


def reset_version_control_client() -> None:
    """Reset singleton client instance (tests)."""
    global _client
    _client = None
