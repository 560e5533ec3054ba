"""Registry configuration.

Environment-based configuration with `.env` support.

Variables:
    REGISTRY_ENV        deployment environment tag (default: development)
    REGISTRY_ENDPOINTS  JSON list: [{"name": "...", "url": {"development": "..."}}]
    REGISTRY_PATH       directory holding the registry files (default: schemas)
    GITHUB_OWNER        repository owner
    GITHUB_REPO         repository name
    GITHUB_TOKEN        API token (optional for public reads)
    GITHUB_MAIN_BRANCH  trusted branch (default: main)
    GITHUB_API_URL      API base URL (default: https://api.github.com)

Usage:
    from gateway_registry.config import load_registry_config

    config = load_registry_config()
"""

import json
import os
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gateway_registry.domain.registry.models import EndpointConfig
from gateway_registry.domain.shared.errors import ConfigurationError

PRODUCTION = "production"
DEVELOPMENT = "development"


class GitHubConfig(BaseModel):
    """Connection to the repository holding the registry."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    token: Optional[str] = None
    main_branch: str = "main"
    registry_path: str = "schemas"
    api_url: str = "https://api.github.com"
    timeout_s: float = 10.0

    @field_validator("registry_path")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        """Registry path is stored without leading/trailing slashes."""
        return v.strip().strip("/")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """API base URL is joined with absolute paths."""
        return v.rstrip("/")


class RegistryConfig(BaseModel):
    """Everything a SchemaRegistry needs besides its collaborators."""

    model_config = ConfigDict(frozen=True)

    env: str = DEVELOPMENT
    github: GitHubConfig
    endpoints: List[EndpointConfig] = Field(default_factory=list)

    @field_validator("endpoints")
    @classmethod
    def unique_names(cls, v: List[EndpointConfig]) -> List[EndpointConfig]:
        """Service names are unique per registry."""
        seen = set()
        for endpoint in v:
            if endpoint.name in seen:
                raise ValueError(f"Duplicate endpoint name: {endpoint.name}")
            seen.add(endpoint.name)
        return v

    @property
    def is_production(self) -> bool:
        return self.env == PRODUCTION


def load_registry_config(env_file: Optional[Union[str, Path]] = None) -> RegistryConfig:
    """Build a RegistryConfig from the environment.

    Args:
        env_file: Optional dotenv file; `.env` in the working directory otherwise

    Raises:
        ConfigurationError: missing owner/repo or invalid values
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    raw_endpoints = os.getenv("REGISTRY_ENDPOINTS", "[]")
    try:
        endpoints = json.loads(raw_endpoints)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"REGISTRY_ENDPOINTS is not valid JSON: {e}") from e

    github = {
        "owner": os.getenv("GITHUB_OWNER", ""),
        "repo": os.getenv("GITHUB_REPO", ""),
        "token": os.getenv("GITHUB_TOKEN") or None,
        "main_branch": os.getenv("GITHUB_MAIN_BRANCH", "main"),
        "registry_path": os.getenv("REGISTRY_PATH", "schemas"),
        "api_url": os.getenv("GITHUB_API_URL", "https://api.github.com"),
    }

    try:
        return RegistryConfig(
            env=os.getenv("REGISTRY_ENV", DEVELOPMENT),
            github=GitHubConfig(**github),
            endpoints=endpoints,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid registry configuration: {e}") from e
