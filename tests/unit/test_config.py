"""
Tests for environment-based configuration.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from gateway_registry.config import GitHubConfig, RegistryConfig, load_registry_config
from gateway_registry.domain.registry.models import EndpointConfig
from gateway_registry.domain.shared.errors import ConfigurationError

ENDPOINTS = [
    {"name": "catalog", "url": {"development": "http://localhost:4001/graphql"}},
    {"name": "reviews", "url": {"development": "http://localhost:4002/graphql"}},
]

VARS = (
    "REGISTRY_ENV",
    "REGISTRY_ENDPOINTS",
    "REGISTRY_PATH",
    "GITHUB_OWNER",
    "GITHUB_REPO",
    "GITHUB_TOKEN",
    "GITHUB_MAIN_BRANCH",
    "GITHUB_API_URL",
)


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITHUB_OWNER", "acme")
    monkeypatch.setenv("GITHUB_REPO", "gateway")
    monkeypatch.setenv("REGISTRY_ENDPOINTS", json.dumps(ENDPOINTS))
    return monkeypatch


@pytest.fixture
def no_env_file(tmp_path: Path) -> Path:
    return tmp_path / "missing.env"


class TestLoadRegistryConfig:
    def test_defaults(self, env: pytest.MonkeyPatch, no_env_file: Path) -> None:
        config = load_registry_config(no_env_file)

        assert config.env == "development"
        assert not config.is_production
        assert config.github.registry_path == "schemas"
        assert config.github.main_branch == "main"
        assert config.github.token is None
        assert [e.name for e in config.endpoints] == ["catalog", "reviews"]

    def test_overrides(self, env: pytest.MonkeyPatch, no_env_file: Path) -> None:
        env.setenv("REGISTRY_ENV", "production")
        env.setenv("REGISTRY_PATH", "/graphql/registry/")
        env.setenv("GITHUB_TOKEN", "t0ken")
        env.setenv("GITHUB_API_URL", "https://ghe.acme.io/api/v3/")

        config = load_registry_config(no_env_file)

        assert config.is_production
        assert config.github.registry_path == "graphql/registry"
        assert config.github.token == "t0ken"
        assert config.github.api_url == "https://ghe.acme.io/api/v3"

    def test_missing_owner(self, env: pytest.MonkeyPatch, no_env_file: Path) -> None:
        env.delenv("GITHUB_OWNER")

        with pytest.raises(ConfigurationError):
            load_registry_config(no_env_file)

    def test_endpoints_not_json(self, env: pytest.MonkeyPatch, no_env_file: Path) -> None:
        env.setenv("REGISTRY_ENDPOINTS", "catalog=http://x")

        with pytest.raises(ConfigurationError, match="REGISTRY_ENDPOINTS"):
            load_registry_config(no_env_file)

    def test_duplicate_endpoints(self, env: pytest.MonkeyPatch, no_env_file: Path) -> None:
        env.setenv("REGISTRY_ENDPOINTS", json.dumps([ENDPOINTS[0], ENDPOINTS[0]]))

        with pytest.raises(ConfigurationError, match="Duplicate"):
            load_registry_config(no_env_file)


def test_registry_config_is_frozen(github_config: GitHubConfig) -> None:
    config = RegistryConfig(
        github=github_config,
        endpoints=[EndpointConfig(name="a", url={"development": "http://a"})],
    )

    with pytest.raises(ValidationError):
        config.env = "production"  # type: ignore[misc]
